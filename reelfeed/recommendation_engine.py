from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union
import logging
import math

import numpy as np

from .catalog import Category, VideoCatalog, VideoRef
from .exceptions import CategoryNotFound, NoVideosAvailable, StoreUnavailable
from .ledger import PreferenceLedger
from .store import Store
from .viewed import ViewedSetTracker, mode_label

logger = logging.getLogger(__name__)

# Each run of this many videos within a category shares a weight divisor
POSITION_RUN = 3


@dataclass(frozen=True)
class Selection:
    video: VideoRef
    category: str


@dataclass(frozen=True)
class Exhausted:
    """Every video in scope had been shown; the viewed-set for `mode` was just cleared."""

    mode: Optional[str]
    cleared: int = 0


def category_weight(score: Optional[float]) -> int:
    """Integer weight for a preference score, rounding halves up. Never below 1."""
    if score is None:
        return 1
    return max(1, int(math.floor(score + 0.5)))


def position_multiplier(weight: int, index: int) -> int:
    return max(1, weight // max(1, index // POSITION_RUN))


def build_weighted_pool(
    categories: Sequence[Category], preferences: Dict[str, float]
) -> List[Tuple[VideoRef, str]]:
    """
    Flatten categories into a draw pool.

    Each video appears `position_multiplier(weight, i)` times, where `i` is its
    position within its category. Callers shuffle videos beforehand so the
    position decay does not always favour the same files.
    """
    pool: List[Tuple[VideoRef, str]] = []
    for category in categories:
        weight = category_weight(preferences.get(category.name))
        for index, video in enumerate(category.videos):
            pool.extend([(video, category.name)] * position_multiplier(weight, index))
    return pool


class RecommendationEngine:
    """
    Picks the next video for a user.

    Algorithmic mode draws across all categories weighted by preference score;
    category mode draws uniformly within one category. Each mode keeps its own
    viewed-set, and an exhausted scope is reset rather than repeated.
    """

    def __init__(self, store: Store, catalog: VideoCatalog, rng: Optional[np.random.Generator] = None):
        self.store = store
        self.catalog = catalog
        self.viewed = ViewedSetTracker(store)
        self.ledger = PreferenceLedger(store)
        self.rng = rng if rng is not None else np.random.default_rng()

    def _shuffled(self, videos: Sequence[VideoRef]) -> List[VideoRef]:
        return [videos[i] for i in self.rng.permutation(len(videos))]

    def _pick_uniform(self, category: Category) -> Selection:
        video = category.videos[int(self.rng.integers(len(category.videos)))]
        return Selection(video=video, category=category.name)

    def _pick_weighted(self, categories: List[Category], preferences: Dict[str, float]) -> Selection:
        shuffled = [Category(name=c.name, videos=tuple(self._shuffled(c.videos))) for c in categories]
        pool = build_weighted_pool(shuffled, preferences)
        logger.debug(f"Weighted pool holds {len(pool)} entries across {len(shuffled)} categories")
        video, category_name = pool[int(self.rng.integers(len(pool)))]
        return Selection(video=video, category=category_name)

    def select_next(self, user_id: str, requested_category: Optional[str] = None) -> Union[Selection, Exhausted]:
        """
        Select the next video for a user.

        Args:
            user_id: Opaque identifier issued by the identity provider
            requested_category: Restrict the draw to this category (category mode)

        Returns:
            A Selection, or Exhausted when the scope had nothing left and its
            viewed-set was reset. Callers may retry once after Exhausted.

        Raises:
            NoVideosAvailable: The catalog is empty
            CategoryNotFound: requested_category is not in the catalog
            StoreUnavailable: Preferences or viewed-set could not be read
        """
        mode = requested_category or None
        logger.info(f"Video request from user {user_id} in {mode_label(mode)} mode")

        categories = self.catalog.list_categories()
        if not categories:
            raise NoVideosAvailable()

        if mode is not None:
            categories = [c for c in categories if c.name == mode]
            if not categories:
                logger.info(f"Requested category '{mode}' not found")
                raise CategoryNotFound(mode)

        viewed = self.viewed.get_viewed(user_id, mode)
        available = []
        for category in categories:
            remaining = tuple(v for v in category.videos if v.path not in viewed)
            if remaining:
                available.append(Category(name=category.name, videos=remaining))

        logger.debug(
            f"Available categories: {[f'{c.name}({len(c.videos)} videos)' for c in available]}"
        )

        if not available:
            cleared = self.viewed.reset_mode(user_id, mode)
            return Exhausted(mode=mode, cleared=cleared)

        if mode is not None:
            selection = self._pick_uniform(available[0])
        else:
            preferences = self.ledger.get_preferences(user_id)
            selection = self._pick_weighted(available, preferences)

        try:
            self.viewed.mark_viewed(user_id, selection.video.path, mode)
        except StoreUnavailable as e:
            logger.error(f"Error marking {selection.video.path} as viewed for user {user_id}: {e}")

        logger.info(f"Selected {selection.video.path} ({selection.category}) for user {user_id}")
        return selection

    def record_feedback(self, user_id: str, video_path: str, category: str, interaction_type: str) -> Optional[float]:
        return self.ledger.apply_feedback(user_id, category, interaction_type, video_path=video_path)

    def get_preference_snapshot(self, user_id: str) -> List[Tuple[str, float]]:
        return self.ledger.snapshot(user_id)

    def initialize_preferences(self, user_id: str) -> List[str]:
        """Seed default scores for every category currently in the catalog."""
        return self.ledger.initialize_preferences(user_id, self.catalog.category_names())
