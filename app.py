"""Recipe Snap HTTP service.

Single entry point for the web front-end and JSON API:
- Builds the recognition capability selected by RECOGNITION_CAPABILITY
- Serves the upload page at GET /
- Exposes the identify-dish and generate-recipe flows as JSON endpoints
- Maps flow errors to {"error", "message"} bodies with matching status codes

Run with: python app.py
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse

from recipe_snap.capabilities.base import RecognitionCapability
from recipe_snap.capabilities.factory import build_capability
from recipe_snap.flows.generate_recipe import RecipeGenerator
from recipe_snap.flows.identify_dish import DishIdentifier
from recipe_snap.models.errors import FlowError, InvalidInput
from recipe_snap.models.models import (
    DishIdentification,
    ErrorResponse,
    HealthResponse,
    PhotoRequest,
    Recipe,
)
from recipe_snap.utils.config import config
from recipe_snap.utils.images import photo_from_data_uri
from recipe_snap.utils.logger import logger
from recipe_snap.web.page import INDEX_HTML


def _error_body(error: FlowError) -> dict:
    return ErrorResponse(error=error.code, message=error.message).model_dump()


def create_app(capability: Optional[RecognitionCapability] = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        capability: Capability to serve. Default: built from configuration at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        active = capability or build_capability()
        app.state.capability = active
        app.state.dish_identifier = DishIdentifier(active, timeout_seconds=config.FLOW_TIMEOUT_SECONDS)
        app.state.recipe_generator = RecipeGenerator(
            active,
            min_ingredients=config.MIN_INGREDIENTS,
            timeout_seconds=config.FLOW_TIMEOUT_SECONDS,
        )
        logger.info(f"✓ Recipe Snap ready with '{active.name}' capability")
        yield
        await active.aclose()

    app = FastAPI(
        title="Recipe Snap API",
        description="Identify a dish or generate a recipe from a photo of food.",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def tag_request(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({(time.perf_counter() - started) * 1000:.0f}ms)",
            extra={"request_id": request_id},
        )
        return response

    @app.exception_handler(FlowError)
    async def flow_error_handler(request: Request, exc: FlowError) -> JSONResponse:
        logger.warning(
            f"{request.url.path} failed with {exc.code}: {exc.message}",
            extra={"request_id": getattr(request.state, "request_id", None)},
        )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        error = InvalidInput(f"Invalid request body: {location or 'body'} {first.get('msg', 'is invalid')}".strip())
        return JSONResponse(status_code=error.status_code, content=_error_body(error))

    @app.get("/", response_class=HTMLResponse, include_in_schema=False)
    async def index() -> str:
        return INDEX_HTML

    @app.get("/health", response_model=HealthResponse, tags=["Service"])
    async def health(request: Request) -> HealthResponse:
        return HealthResponse(capability=request.app.state.capability.name)

    @app.post(
        "/api/identify-dish",
        response_model=DishIdentification,
        responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
        tags=["Flows"],
    )
    async def identify_dish(body: PhotoRequest, request: Request) -> DishIdentification:
        """Identify the dish shown in the photo and report a 0-1 confidence."""
        photo = photo_from_data_uri(body.photo_data_uri)
        return await request.app.state.dish_identifier.identify(photo)

    @app.post(
        "/api/generate-recipe",
        response_model=Recipe,
        responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
        tags=["Flows"],
    )
    async def generate_recipe(body: PhotoRequest, request: Request) -> Recipe:
        """Detect the ingredients in the photo and compose a recipe from them."""
        photo = photo_from_data_uri(body.photo_data_uri)
        return await request.app.state.recipe_generator.generate(photo)

    return app


app = create_app()


if __name__ == "__main__":
    logger.info(f"Starting Recipe Snap on port {config.PORT}")
    logger.info(f"Recognition capability: {config.RECOGNITION_CAPABILITY}")
    logger.info(f"Access Web UI at: http://localhost:{config.PORT}")
    logger.info(f"API docs available at: http://localhost:{config.PORT}/docs")
    uvicorn.run(app, host=config.HOST, port=config.PORT)
