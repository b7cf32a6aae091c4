import logging
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studyhub import __version__
from studyhub.api.dependencies import get_store
from studyhub.api.middleware import RequestLoggingMiddleware
from studyhub.api.routers import activity, notes, planner, public, quizzes, subjects
from studyhub.config import Settings, get_settings
from studyhub.storage.json_store import RecordNotFoundError, StudyJsonStore
from studyhub.utils.logging import configure_logging

# Load environment variables from a .env file if present
load_dotenv()

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "System", "description": "System and service endpoints"},
    {"name": "Subjects", "description": "Subjects (courses) owned by a user"},
    {"name": "Notes", "description": "Notes, sharing and note tags"},
    {"name": "Tags", "description": "Tag catalogue"},
    {"name": "Quizzes", "description": "Rule-based quiz sessions generated from notes"},
    {"name": "Flashcards", "description": "Per-subject flashcards"},
    {"name": "Planner", "description": "Exam countdown, deadlines, reading list and goals"},
    {"name": "Activity", "description": "Daily study activity tracking"},
    {"name": "Public", "description": "Publicly shared notes"},
]


async def _record_not_found_handler(request: Request, exc: RecordNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Explicit settings; defaults to the environment-derived settings.

    Returns:
        FastAPI: The configured application with every router mounted.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_file)

    app = FastAPI(
        title="Study Hub Backend",
        description="Backend service for organizing subjects and notes, generating quizzes and tracking study activity.",
        version=__version__,
        openapi_tags=openapi_tags,
    )

    # CORS configuration to allow frontend integration (adjust origins in env if needed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(RecordNotFoundError, _record_not_found_handler)

    @app.get("/", summary="Health Check", tags=["System"])
    def health_check(store: StudyJsonStore = Depends(get_store)):
        """
        Health check endpoint.

        Returns:
            JSON payload with a simple 'Healthy' message and the current data file path.
        """
        # Touch the store so the data file exists with every table
        store.load_all()
        return {"message": "Healthy", "data_file": store.path}

    for module in (subjects, notes, quizzes, planner, activity, public):
        app.include_router(module.router)

    logger.info("Study Hub backend %s ready | Data file: %s", __version__, settings.data_file)
    return app


app = create_app()
