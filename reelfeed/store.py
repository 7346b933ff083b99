"""
Persistent score/history store.

The engine only needs a handful of keyed operations; `Store` documents them so
any backend can stand in. `SQLAlchemyStore` is the database-backed
implementation used by the API.
"""

from typing import Dict, List, Optional, Protocol, Set
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .database import UserPreference, ViewedVideo, VideoInteraction
from .exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


class Store(Protocol):
    """Operations the engine performs against durable storage."""

    def get_viewed(self, user_id: str, mode: Optional[str]) -> Set[str]:
        ...

    def mark_viewed(self, user_id: str, video_path: str, mode: Optional[str]) -> None:
        """Idempotent: marking the same (user, path, mode) twice is a no-op."""
        ...

    def reset_mode(self, user_id: str, mode: Optional[str]) -> int:
        """Delete every viewed record for exactly this (user, mode). Returns the count removed."""
        ...

    def get_preferences(self, user_id: str) -> Dict[str, float]:
        ...

    def get_preference(self, user_id: str, category: str) -> Optional[float]:
        ...

    def set_preference(self, user_id: str, category: str, score: float) -> None:
        ...

    def seed_preference(self, user_id: str, category: str, score: float) -> bool:
        """Insert a preference row unless one exists. Returns True if inserted."""
        ...

    def append_interaction(
        self, user_id: str, video_path: str, category: Optional[str], interaction_type: str
    ) -> None:
        ...


class SQLAlchemyStore:
    def __init__(self, db: Session):
        self.db = db

    def _viewed_query(self, user_id: str, mode: Optional[str]):
        q = self.db.query(ViewedVideo).filter(ViewedVideo.user_id == user_id)
        # NULL never compares equal in SQL, so algorithmic mode needs IS NULL
        if mode is None:
            return q.filter(ViewedVideo.mode.is_(None))
        return q.filter(ViewedVideo.mode == mode)

    def _fail(self, operation: str, error: SQLAlchemyError) -> StoreUnavailable:
        self.db.rollback()
        logger.error(f"Store error during {operation}: {error}", exc_info=True)
        return StoreUnavailable(operation, error)

    # Viewed-set

    def get_viewed(self, user_id: str, mode: Optional[str]) -> Set[str]:
        try:
            rows = self._viewed_query(user_id, mode).with_entities(ViewedVideo.video_path).all()
        except SQLAlchemyError as e:
            raise self._fail("get_viewed", e)
        return {path for (path,) in rows}

    def mark_viewed(self, user_id: str, video_path: str, mode: Optional[str]) -> None:
        try:
            existing = self._viewed_query(user_id, mode).filter(ViewedVideo.video_path == video_path).first()
            if existing:
                return
            self.db.add(ViewedVideo(user_id=user_id, video_path=video_path, mode=mode))
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent request marking the same video
            self.db.rollback()
        except SQLAlchemyError as e:
            raise self._fail("mark_viewed", e)

    def reset_mode(self, user_id: str, mode: Optional[str]) -> int:
        try:
            deleted = self._viewed_query(user_id, mode).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("reset_mode", e)
        return int(deleted)

    # Preferences

    def get_preferences(self, user_id: str) -> Dict[str, float]:
        try:
            rows = (
                self.db.query(UserPreference.category, UserPreference.score)
                .filter(UserPreference.user_id == user_id)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("get_preferences", e)
        return {category: float(score) for category, score in rows}

    def get_preference(self, user_id: str, category: str) -> Optional[float]:
        try:
            pref = (
                self.db.query(UserPreference)
                .filter(UserPreference.user_id == user_id, UserPreference.category == category)
                .first()
            )
        except SQLAlchemyError as e:
            raise self._fail("get_preference", e)
        return float(pref.score) if pref else None

    def set_preference(self, user_id: str, category: str, score: float) -> None:
        try:
            updated = (
                self.db.query(UserPreference)
                .filter(UserPreference.user_id == user_id, UserPreference.category == category)
                .update({UserPreference.score: score}, synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("set_preference", e)
        if not updated:
            logger.warning(f"No preference row for user {user_id} category {category}; nothing updated")

    def seed_preference(self, user_id: str, category: str, score: float) -> bool:
        try:
            existing = (
                self.db.query(UserPreference.id)
                .filter(UserPreference.user_id == user_id, UserPreference.category == category)
                .first()
            )
            if existing:
                return False
            self.db.add(UserPreference(user_id=user_id, category=category, score=score))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return False
        except SQLAlchemyError as e:
            raise self._fail("seed_preference", e)
        return True

    # Interaction log

    def append_interaction(
        self, user_id: str, video_path: str, category: Optional[str], interaction_type: str
    ) -> None:
        try:
            self.db.add(VideoInteraction(
                user_id=user_id,
                video_path=video_path,
                category=category,
                interaction_type=interaction_type,
            ))
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("append_interaction", e)

    def list_interactions(self, user_id: Optional[str] = None, limit: int = 100) -> List[VideoInteraction]:
        try:
            q = self.db.query(VideoInteraction)
            if user_id:
                q = q.filter(VideoInteraction.user_id == user_id)
            return q.order_by(VideoInteraction.created_at.desc(), VideoInteraction.id.desc()).limit(limit).all()
        except SQLAlchemyError as e:
            raise self._fail("list_interactions", e)
