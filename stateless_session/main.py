"""Main FastAPI application entry point for the stateless session service."""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

# Load environment variables from .env file
load_dotenv()

from stateless_session import __version__
from stateless_session.config import ConfigurationError, get_config
from stateless_session.errors import ReservedAttributeError, SessionInvalidatedError
from stateless_session.logger import configure_logging
from stateless_session.middleware import StatelessSessionMiddleware
from stateless_session.routes.session import router as session_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    try:
        config = get_config()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise
    configure_logging(config)
    logger.info(f"Session cookie '{config.cookie_name}' configured (secure={config.cookie_secure})")
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Stateless Session Service",
    description="Signed, cookie-carried sessions with coalesced cookie writes",
    version=__version__,
    lifespan=lifespan,
)

# Add proxy headers middleware (for reverse proxy HTTPS handling)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

# Add session middleware; configuration is read when the middleware stack is built
app.add_middleware(StatelessSessionMiddleware)

app.include_router(session_router)


@app.exception_handler(ReservedAttributeError)
async def reserved_attribute_handler(request: Request, exc: ReservedAttributeError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "error": "reserved_attribute", "key": exc.key},
    )


@app.exception_handler(SessionInvalidatedError)
async def invalidated_session_handler(request: Request, exc: SessionInvalidatedError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "error": "session_invalidated"},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}
