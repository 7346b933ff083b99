from typing import Optional, Set
import logging

from .store import Store

logger = logging.getLogger(__name__)


def mode_label(mode: Optional[str]) -> str:
    return "algorithmic" if mode is None else f"category:{mode}"


class ViewedSetTracker:
    """
    Per (user, mode) record of already surfaced videos.

    `mode` is None for algorithmic mode or a category name for category mode.
    The sets are disjoint: a video seen in one mode is still fresh in another.
    """

    def __init__(self, store: Store):
        self.store = store

    def get_viewed(self, user_id: str, mode: Optional[str] = None) -> Set[str]:
        return self.store.get_viewed(user_id, mode)

    def mark_viewed(self, user_id: str, video_path: str, mode: Optional[str] = None) -> None:
        self.store.mark_viewed(user_id, video_path, mode)

    def reset_mode(self, user_id: str, mode: Optional[str] = None) -> int:
        deleted = self.store.reset_mode(user_id, mode)
        logger.info(f"Reset {deleted} viewed records for user {user_id} in {mode_label(mode)} mode")
        return deleted
