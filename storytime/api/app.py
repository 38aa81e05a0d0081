"""
HTTP surface for the bedtime story service.
"""

from __future__ import annotations

import logging
import os
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import uvicorn
from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from storytime.common import (
    ProviderError,
    ServiceSettings,
    StoreError,
    StoryNotFoundError,
    StoryValidationError,
)
from storytime.curriculum import MAX_AGE, MIN_AGE, all_curriculum_profiles, resolve_curriculum_profile
from storytime.library import LibraryStore, UserPreferences, create_library_store
from storytime.pdf_generation import StoryPDFBuilder
from storytime.pipeline import BedtimeStoryOrchestrator, build_content_provider

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _pdf_filename(title: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "_", title).strip("_")
    return f"{slug or 'story'}.pdf"


def create_app(
    *,
    settings: ServiceSettings | None = None,
    store: LibraryStore | None = None,
    orchestrator: BedtimeStoryOrchestrator | None = None,
    pdf_builder: StoryPDFBuilder | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Parameters
    ----------
    settings:
        Service configuration. Read from the environment when omitted.
    store:
        Library store. Built from ``settings.database_url`` when omitted.
    orchestrator:
        Story pipeline. Built around the configured content provider when omitted.
    pdf_builder:
        PDF renderer used by the export endpoint.
    """
    settings = settings or ServiceSettings.from_env()
    library = store or create_library_store(settings.database_url)
    pipeline = orchestrator or BedtimeStoryOrchestrator(
        provider=build_content_provider(settings),
        store=library,
    )
    renderer = pdf_builder or StoryPDFBuilder(request_timeout=settings.provider_timeout or 30.0)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        library.close()

    app = FastAPI(title="Bedtime Stories API", lifespan=lifespan)
    app.state.store = library
    app.state.orchestrator = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoryNotFoundError)
    async def _not_found(_: Request, exc: StoryNotFoundError) -> JSONResponse:
        return _error(404, "Story not found")

    @app.exception_handler(RequestValidationError)
    async def _unparseable(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Malformed path ids are treated as unknown resources.
        if any(tuple(error.get("loc", ()))[:1] == ("path",) for error in exc.errors()):
            if request.url.path.startswith("/api/stories"):
                return _error(404, "Story not found")
            return _error(404, f"No curriculum profile for age {request.path_params.get('age')}")
        logger.warning("Rejected request body: %s", exc.errors())
        return _error(500, "Request body must be a JSON object.")

    @app.exception_handler(StoryValidationError)
    async def _invalid(_: Request, exc: StoryValidationError) -> JSONResponse:
        logger.warning("Rejected request: %s", exc)
        return _error(500, str(exc))

    @app.exception_handler(ProviderError)
    async def _provider_failed(_: Request, exc: ProviderError) -> JSONResponse:
        logger.error("Story provider failed: %s", exc)
        return _error(500, str(exc))

    @app.exception_handler(StoreError)
    async def _store_failed(_: Request, exc: StoreError) -> JSONResponse:
        logger.error("Library store failed: %s", exc)
        return _error(500, str(exc))

    # ----------------- Stories -----------------

    @app.get("/api/stories")
    def list_stories() -> list[dict[str, Any]]:
        return [story.as_dict() for story in library.get_all_stories()]

    @app.get("/api/stories/{story_id}")
    def get_story(story_id: int) -> dict[str, Any]:
        story = library.get_story(story_id)
        if story is None:
            raise StoryNotFoundError(story_id)
        return story.as_dict()

    @app.post("/api/stories/generate")
    def generate_story(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
        outcome = pipeline.run_from_mapping(payload)
        return outcome.to_dict()

    @app.delete("/api/stories/{story_id}")
    def delete_story(story_id: int) -> dict[str, Any]:
        if not library.delete_story(story_id):
            raise StoryNotFoundError(story_id)
        return {"success": True}

    @app.get("/api/stories/{story_id}/pdf")
    def export_story_pdf(story_id: int) -> Response:
        story = library.get_story(story_id)
        if story is None:
            raise StoryNotFoundError(story_id)
        return Response(
            content=renderer.render(story),
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{_pdf_filename(story.title)}"'},
        )

    # ----------------- Preferences -----------------

    @app.get("/api/preferences")
    def get_preferences() -> dict[str, Any]:
        return library.get_user_preferences().as_dict()

    @app.put("/api/preferences")
    def update_preferences(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
        preferences = UserPreferences.from_mapping(payload)
        return library.update_user_preferences(preferences).as_dict()

    # ----------------- Characters -----------------

    @app.get("/api/characters")
    def list_character_suggestions() -> list[dict[str, Any]]:
        return [suggestion.as_dict() for suggestion in library.get_character_suggestions()]

    @app.post("/api/characters/suggest")
    def suggest_characters() -> dict[str, Any]:
        return {"characters": pipeline.suggest_characters()}

    # ----------------- Curriculum -----------------

    @app.get("/api/curriculum")
    def list_curriculum() -> list[dict[str, Any]]:
        return [profile.as_dict() for profile in all_curriculum_profiles()]

    @app.get("/api/curriculum/{age}", response_model=None)
    def get_curriculum(age: int) -> dict[str, Any] | JSONResponse:
        if not MIN_AGE <= age <= MAX_AGE:
            return _error(404, f"No curriculum profile for age {age}")
        return resolve_curriculum_profile(age).as_dict()

    return app


def main() -> None:
    settings = ServiceSettings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings=settings), host="0.0.0.0", port=int(os.getenv("PORT", 8000)))


if __name__ == "__main__":
    main()
