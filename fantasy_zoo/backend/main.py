"""FastAPI application for the Fantasy Zoo backend"""
import logging
import os
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from fantasy_zoo import __version__
from fantasy_zoo.backend.database import DatabaseConnection, get_db, execute_query
from fantasy_zoo.backend.routers import game, leaderboard

logger = logging.getLogger(__name__)

IS_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"

# Bodies are tiny: the prestige player name at most
MAX_REQUEST_SIZE = 10 * 1024

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'none';",
}

DEV_ORIGINS = [
    f"http://{host}:{port}"
    for host in ("localhost", "127.0.0.1")
    for port in (3000, 5173, 8080)
]


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """413 for any request announcing a body over MAX_REQUEST_SIZE"""

    async def dispatch(self, request: Request, call_next):
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > MAX_REQUEST_SIZE:
            client = request.client.host if request.client else "unknown"
            logger.warning(f"Rejected {declared}-byte body from {client} on {request.url.path}")
            return JSONResponse(
                status_code=413,
                content={"detail": f"Request body too large. Maximum size: {MAX_REQUEST_SIZE} bytes"}
            )
        return await call_next(request)


def parse_origins(value: Optional[str]) -> List[str]:
    """Comma separated ALLOWED_ORIGINS -> list, blanks dropped"""
    return [origin.strip() for origin in (value or "").split(",") if origin.strip()]


def get_allowed_origins() -> List[str]:
    """Dev servers locally; ALLOWED_ORIGINS in production"""
    if not IS_PRODUCTION:
        return DEV_ORIGINS

    origins = parse_origins(os.getenv("ALLOWED_ORIGINS"))
    if origins:
        logger.info(f"Production CORS origins: {origins}")
    else:
        logger.warning("Production mode but no ALLOWED_ORIGINS set!")
    return origins


app = FastAPI(
    title="Fantasy Zoo API",
    description="Backend API for the Fantasy Zoo idle game - zoo state, actions and leaderboard",
    version=__version__
)

allowed_origins = get_allowed_origins()

app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["*"],
    # Cookies cannot be shared with a wildcard origin
    allow_credentials=bool(allowed_origins),
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

app.include_router(leaderboard.router)
app.include_router(game.router)


@app.get("/")
async def root():
    return {"service": "Fantasy Zoo API", "version": __version__, "status": "online"}


@app.get("/api/health")
async def health_check(db: DatabaseConnection = Depends(get_db)):
    """Liveness plus a database probe"""
    try:
        execute_query(db, "SELECT 1")
        db_status = "connected"
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        db_status = f"error: {e}"
    return {"status": "healthy", "database": db_status}


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)

    content = {"detail": "Internal server error"}
    if not IS_PRODUCTION:
        content.update(error=str(exc), type=type(exc).__name__)
    return JSONResponse(status_code=500, content=content)


def run(host: Optional[str] = None, port: Optional[int] = None):
    """Serve the API with uvicorn; HOST and PORT environment variables are the defaults"""
    import uvicorn

    host = host or os.getenv("HOST", "0.0.0.0")
    port = port or int(os.getenv("PORT", 8000))
    logger.info(f"Fantasy Zoo API {__version__} on {host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
