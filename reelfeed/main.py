from fastapi import FastAPI, Depends, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from datetime import datetime
import uvicorn
import os
from dotenv import load_dotenv

from . import schemas
from .auth import get_current_user_id, require_operator
from .catalog import VideoCatalog, ensure_initial_folders
from .database import get_db, init_db
from .exceptions import CategoryNotFound, NoVideosAvailable, StoreUnavailable
from .recommendation_engine import RecommendationEngine, Exhausted
from .store import SQLAlchemyStore

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

PORT = int(os.getenv("PORT", "8080"))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001").split(",")
    if origin.strip()
]

# Initialize FastAPI app
app = FastAPI(
    title="Reel Feed API",
    description="Preference-weighted short video feed",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Catalog is resolved from disk on every request; nothing is cached between calls
def get_catalog() -> VideoCatalog:
    return VideoCatalog(os.getenv("VIDEOS_DIR"))


def get_store(db: Session = Depends(get_db)) -> SQLAlchemyStore:
    return SQLAlchemyStore(db)


def get_recommendation_engine(
    store: SQLAlchemyStore = Depends(get_store),
    catalog: VideoCatalog = Depends(get_catalog),
) -> RecommendationEngine:
    return RecommendationEngine(store, catalog)


def _store_error(e: StoreUnavailable) -> HTTPException:
    return HTTPException(status_code=503, detail=str(e))


STORE_ERROR_RESPONSES = {503: {"model": schemas.ErrorResponse, "description": "Store unavailable"}}
SELECTION_ERROR_RESPONSES = {
    404: {"model": schemas.ErrorResponse, "description": "Category not found or no videos available"},
    **STORE_ERROR_RESPONSES,
}


@app.on_event("startup")
async def startup_event():
    """Create tables and the default category folders."""
    logger.info("Starting up the reel feed service...")
    try:
        init_db()
        ensure_initial_folders(os.getenv("VIDEOS_DIR"))
    except Exception as e:
        logger.error(f"Error during startup: {e}", exc_info=True)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint to check if the API is running."""
    return {
        "message": "Reel Feed API Server is running!",
        "status": "healthy",
        "port": PORT,
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health", response_model=schemas.HealthCheck, tags=["Root"])
async def health():
    return {"status": "healthy", "port": PORT, "timestamp": datetime.utcnow().isoformat()}


@app.get("/api/categories", response_model=List[schemas.Category], tags=["Catalog"])
def list_categories(catalog: VideoCatalog = Depends(get_catalog)):
    return [
        {
            "name": category.name,
            "videos": [{"filename": v.filename, "path": v.path} for v in category.videos],
        }
        for category in catalog.list_categories()
    ]


@app.get("/api/next-video", responses=SELECTION_ERROR_RESPONSES, tags=["Recommendations"])
def next_video(
    category: Optional[str] = Query(None, description="Restrict the draw to this category"),
    user_id: str = Depends(get_current_user_id),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    """
    Get the next video for the current user.

    - **category**: category mode when set, otherwise preference-weighted across all categories

    When every video in scope has been shown the viewed history for that mode is
    cleared and `resetViewed` is returned; request again to continue.
    """
    try:
        result = engine.select_next(user_id, category)
    except CategoryNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NoVideosAvailable as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailable as e:
        raise _store_error(e)

    if isinstance(result, Exhausted):
        return schemas.ResetResponse().model_dump()

    return schemas.NextVideoResponse(
        video=schemas.Video(filename=result.video.filename, path=result.video.path),
        category=result.category,
    ).model_dump()


@app.post("/api/interact", response_model=schemas.InteractionAck, responses=STORE_ERROR_RESPONSES, tags=["Feedback"])
def interact(
    interaction: schemas.InteractionCreate,
    user_id: str = Depends(get_current_user_id),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    try:
        engine.record_feedback(
            user_id,
            interaction.videoPath,
            interaction.category,
            interaction.interactionType,
        )
    except StoreUnavailable as e:
        raise _store_error(e)
    return schemas.InteractionAck()


@app.get("/api/preferences", response_model=List[schemas.Preference], responses=STORE_ERROR_RESPONSES, tags=["Feedback"])
def preferences(
    user_id: str = Depends(get_current_user_id),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    try:
        snapshot = engine.get_preference_snapshot(user_id)
    except StoreUnavailable as e:
        raise _store_error(e)
    return [{"category": category, "score": score} for category, score in snapshot]


@app.post("/api/preferences/initialize", response_model=schemas.InitializeResponse, responses=STORE_ERROR_RESPONSES, tags=["Feedback"])
def initialize_preferences(
    user_id: str = Depends(get_current_user_id),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    """Seed a default score for every catalog category. Called by the identity provider at sign-up and login."""
    try:
        created = engine.initialize_preferences(user_id)
    except StoreUnavailable as e:
        raise _store_error(e)
    return {"status": "success", "created": created}


# Reads every user's log, so it sits behind the operator token
@app.get(
    "/local/interactions",
    response_model=List[schemas.VideoInteraction],
    dependencies=[Depends(require_operator)],
    responses={403: {"model": schemas.ErrorResponse}, **STORE_ERROR_RESPONSES},
    tags=["Admin"],
)
def list_interactions(
    user_id: Optional[str] = Query(None, description="Filter by user id"),
    limit: int = Query(100, ge=1, le=1000),
    store: SQLAlchemyStore = Depends(get_store),
):
    try:
        return store.list_interactions(user_id=user_id, limit=limit)
    except StoreUnavailable as e:
        raise _store_error(e)


if __name__ == "__main__":
    uvicorn.run("reelfeed.main:app", host=os.getenv("HOST", "0.0.0.0"), port=PORT, reload=True)
