"""
Reel Feed

Picks the next short video for a user, weighted by per-category preference
scores that move with likes, dislikes and scrolls.
"""

from .database import Base, engine, SessionLocal, get_db, init_db, UserPreference, ViewedVideo, VideoInteraction
from .catalog import VideoCatalog, Category, VideoRef, ensure_initial_folders
from .exceptions import ReelFeedError, CategoryNotFound, NoVideosAvailable, StoreUnavailable
from .ledger import PreferenceLedger, SCORE_CHANGES
from .recommendation_engine import RecommendationEngine, Selection, Exhausted, build_weighted_pool
from .store import Store, SQLAlchemyStore
from .viewed import ViewedSetTracker

__version__ = "0.1.0"
