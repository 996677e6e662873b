from contextlib import asynccontextmanager
from typing import Optional
import logging
import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi import APIRouter

from .config import Settings, get_settings
from .core.errors import ScopeError

# API routers
from .api.v1.models import router as models_router
from .api.v1.chat import router as chat_router
from .api.v1.conversations import router as conversations_router
from .api.v1.settings import router as settings_router
from .api.v1.voice import router as voice_router
from .core.logging import setup_logging
from .db.session import configure_engine, dispose_db, init_db

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Ensure SQLite tables exist
    await init_db()
    yield
    await dispose_db()


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or get_settings()
    # Setup logging early
    setup_logging(settings.log_level)
    configure_engine(settings.database_url)

    app = FastAPI(title="Scope Server", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.upstream_transport = transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(o).rstrip("/") for o in settings.allowed_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ScopeError)
    async def _scope_error(_request: Request, exc: ScopeError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        # Unparsable or ill-typed bodies are plain client errors
        logger.info("Rejected request body: %s", exc.errors())
        return JSONResponse(status_code=400, content={"error": "Malformed request body"})

    # Mount API v1
    api_v1 = APIRouter()
    api_v1.include_router(models_router, prefix="/v1")
    api_v1.include_router(chat_router, prefix="/v1")
    api_v1.include_router(conversations_router, prefix="/v1")
    api_v1.include_router(settings_router, prefix="/v1")
    api_v1.include_router(voice_router, prefix="/v1")
    app.include_router(api_v1, prefix="/api")

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.get("/")
    def root():
        return {"service": "scope", "version": __version__}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("scope.main:app", host="0.0.0.0", port=get_settings().server_port)
