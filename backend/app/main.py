"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.routers import chat, identity
from app.routers.dependencies import get_principal_id
from app.services.completions import CompletionConfigError, get_default_completion_client
from app.services.errors import ChatError, InvalidInput, Unauthenticated

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.getLogger("app").setLevel(settings.log_level.upper())
    # Built once and shared read-only by every request.
    try:
        app.state.completion_client = get_default_completion_client(settings)
    except CompletionConfigError:
        logger.exception("Completion client is not configured; chat turns will fail until it is set.")
        app.state.completion_client = None
    yield


settings = get_settings()

app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat.router, tags=["chat"])
app.include_router(identity.router, tags=["identity"])


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed chat requests in the chat envelope, authentication first."""

    if not request.url.path.startswith("/api/chat"):
        return await request_validation_exception_handler(request, exc)
    error: ChatError = Unauthenticated() if get_principal_id(request) is None else InvalidInput()
    logger.warning(
        "request.invalid path=%s status=%d errors=%d",
        request.url.path,
        error.status_code,
        len(exc.errors()),
    )
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_response().model_dump(mode="json", exclude_none=True),
    )


@app.get("/health")
def health() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}
