from typing import Dict, Iterable, List, Optional, Tuple
import logging

from .exceptions import StoreUnavailable
from .store import Store

logger = logging.getLogger(__name__)

# Score changes per interaction type
SCORE_CHANGES: Dict[str, float] = {
    "like": 1.0,     # thumbs up
    "scroll": 0.5,   # scrolled on, half a like
    "dislike": -1.0,
    "hate": -2.0,    # swiped away
}

MIN_SCORE = 1.0
DEFAULT_SCORE = 1.0


def score_delta(interaction_type: str) -> float:
    """Delta for an interaction type; unknown types score 0."""
    return SCORE_CHANGES.get(interaction_type, 0.0)


def clamp_score(score: float) -> float:
    return max(MIN_SCORE, score)


class PreferenceLedger:
    """Per (user, category) preference scores, adjusted by feedback. Scores never drop below 1."""

    def __init__(self, store: Store):
        self.store = store

    def get_preferences(self, user_id: str) -> Dict[str, float]:
        return self.store.get_preferences(user_id)

    def snapshot(self, user_id: str) -> List[Tuple[str, float]]:
        """Preferences ordered by score, highest first (ties by category name)."""
        prefs = self.get_preferences(user_id)
        return sorted(prefs.items(), key=lambda item: (-item[1], item[0]))

    def initialize_preferences(self, user_id: str, categories: Iterable[str]) -> List[str]:
        """Seed a default score for every category the user has no row for yet."""
        created = [
            category
            for category in categories
            if self.store.seed_preference(user_id, category, DEFAULT_SCORE)
        ]
        if created:
            logger.info(f"Initialized preferences for user {user_id}: {created}")
        return created

    def apply_feedback(
        self,
        user_id: str,
        category: str,
        interaction_type: str,
        video_path: Optional[str] = None,
    ) -> Optional[float]:
        """
        Record an interaction and adjust the category score.

        The interaction is appended to the log before any score change, even
        when the type carries no delta. A failed log write is logged and does
        not block the score update. Missing preference rows are left alone.

        Returns:
            The new score, or None when nothing was updated.
        """
        try:
            self.store.append_interaction(user_id, video_path or "", category, interaction_type)
        except StoreUnavailable as e:
            logger.error(f"Error recording interaction for user {user_id}: {e}")

        delta = score_delta(interaction_type)
        if interaction_type not in SCORE_CHANGES:
            logger.warning(f"Unknown interaction type '{interaction_type}' from user {user_id}; score unchanged")
        if delta == 0:
            return None

        current = self.store.get_preference(user_id, category)
        if current is None:
            logger.warning(f"User {user_id} has no preference for '{category}'; feedback not applied")
            return None

        new_score = clamp_score(current + delta)
        self.store.set_preference(user_id, category, new_score)
        logger.info(
            f"Preference for user {user_id} '{category}': {current:g} -> {new_score:g} ({interaction_type})"
        )
        return new_score
