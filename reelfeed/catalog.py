"""
Catalog resolver.

Categories are folders under the videos root; videos are the files inside them
with a supported extension. The catalog is enumerated fresh on every call so
new files are picked up without a restart.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple
import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_VIDEOS_DIR = os.getenv("VIDEOS_DIR", "./videos")
DEFAULT_EXTENSIONS = tuple(
    ext.strip().lower()
    for ext in os.getenv("VIDEO_EXTENSIONS", ".mp4,.avi,.webm").split(",")
    if ext.strip()
)
DEFAULT_INITIAL_CATEGORIES = [
    name.strip()
    for name in os.getenv("INITIAL_CATEGORIES", "Comedy,Dance,Food,Sports,Music").split(",")
    if name.strip()
]

# URL prefix under which video files are addressed
VIDEO_URL_PREFIX = "/videos"


@dataclass(frozen=True)
class VideoRef:
    """A single video. `path` is the stable identifier."""

    filename: str
    path: str
    category: str


@dataclass(frozen=True)
class Category:
    name: str
    videos: Tuple[VideoRef, ...] = field(default_factory=tuple)


class VideoCatalog:
    def __init__(self, videos_dir: Optional[str] = None, extensions: Sequence[str] = DEFAULT_EXTENSIONS):
        self.videos_dir = Path(videos_dir or DEFAULT_VIDEOS_DIR)
        self.extensions = tuple(ext.lower() for ext in extensions)

    def _is_video(self, entry: Path) -> bool:
        return entry.is_file() and entry.suffix.lower() in self.extensions

    def list_categories(self) -> List[Category]:
        """
        Enumerate categories and their videos.

        Folders and files are sorted by name so the result is deterministic for
        a given filesystem state. Folders with no video files are skipped.
        I/O errors are logged and produce an empty catalog.
        """
        categories: List[Category] = []
        try:
            if not self.videos_dir.is_dir():
                logger.warning(f"Videos directory {self.videos_dir} does not exist")
                return []

            folders = sorted(
                (entry for entry in self.videos_dir.iterdir() if entry.is_dir()),
                key=lambda entry: entry.name,
            )
            for folder in folders:
                files = sorted(
                    (entry.name for entry in folder.iterdir() if self._is_video(entry))
                )
                if not files:
                    continue
                categories.append(Category(
                    name=folder.name,
                    videos=tuple(
                        VideoRef(
                            filename=name,
                            path=f"{VIDEO_URL_PREFIX}/{folder.name}/{name}",
                            category=folder.name,
                        )
                        for name in files
                    ),
                ))
        except OSError as e:
            logger.error(f"Error scanning video folders in {self.videos_dir}: {e}", exc_info=True)
            return []

        logger.debug(f"Resolved {len(categories)} categories from {self.videos_dir}")
        return categories

    def category_names(self) -> List[str]:
        return [category.name for category in self.list_categories()]


def ensure_initial_folders(videos_dir: Optional[str] = None, names: Iterable[str] = None) -> Path:
    """Create the videos root and one folder per default category, each with a README hint."""
    root = Path(videos_dir or DEFAULT_VIDEOS_DIR)
    names = DEFAULT_INITIAL_CATEGORIES if names is None else list(names)
    root.mkdir(parents=True, exist_ok=True)

    supported = ", ".join(ext.lstrip(".").upper() for ext in DEFAULT_EXTENSIONS)
    for name in names:
        folder = root / name
        folder.mkdir(parents=True, exist_ok=True)
        readme = folder / "README.txt"
        if not readme.exists():
            readme.write_text(f"Place your {name} videos here.\nSupported formats: {supported}")

    logger.info(f"Video folders ready at {root.resolve()}")
    return root
