from sqlalchemy import create_engine, Column, Integer, String, Float, DateTime, UniqueConstraint, Index
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from datetime import datetime
from typing import Generator
import os
from dotenv import load_dotenv

load_dotenv()

# Database URL configuration
SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./reelfeed.db")

# SQLite needs check_same_thread disabled for FastAPI's threadpool
connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

# Create SQLAlchemy engine
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


class UserPreference(Base):
    __tablename__ = "user_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "category", name="uq_user_preferences_user_category"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    category = Column(String, nullable=False)
    score = Column(Float, nullable=False, default=1.0)


class ViewedVideo(Base):
    __tablename__ = "viewed_videos"
    __table_args__ = (
        # mode is NULL for algorithmic mode, the category name for category mode
        UniqueConstraint("user_id", "video_path", "mode", name="uq_viewed_videos_user_path_mode"),
        Index("ix_viewed_videos_user_mode", "user_id", "mode"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False)
    video_path = Column(String, nullable=False)
    mode = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class VideoInteraction(Base):
    __tablename__ = "video_interactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    video_path = Column(String, nullable=False)
    category = Column(String, nullable=True)
    # Free-form: unknown types are logged, not rejected
    interaction_type = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


def init_db() -> None:
    """Create any missing tables on the configured engine."""
    Base.metadata.create_all(bind=engine)


# Dependency to get DB session
def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
