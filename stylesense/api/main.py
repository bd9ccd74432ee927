"""FastAPI application for StyleSense."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stylesense import __version__
from stylesense.config import Settings, get_settings
from stylesense.core.errors import StyleSenseError
from stylesense.db.store import GarmentStore

from .routes import outfits, stylist, tryon, wardrobe

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    app.state.store = GarmentStore(settings.database_url)
    logger.info(f"StyleSense API {__version__} ready ({settings.database_url})")
    yield
    app.state.store.engine.dispose()
    logger.info("StyleSense API shutting down")


app = FastAPI(
    title="StyleSense API",
    description="AI wardrobe, stylist and virtual try-on",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request."""
    logger.info(f"{request.method} {request.url.path}")
    return await call_next(request)


@app.exception_handler(StyleSenseError)
async def stylesense_error_handler(request: Request, exc: StyleSenseError):
    """Turn typed errors into {error, kind} responses."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include routers
app.include_router(wardrobe.router, prefix="/api", tags=["Wardrobe"])
app.include_router(outfits.router, prefix="/api", tags=["Outfits"])
app.include_router(stylist.router, prefix="/api", tags=["Stylist"])
app.include_router(tryon.router, prefix="/api", tags=["Try-On"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "StyleSense API",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/api/health")
async def health(settings: Settings = Depends(get_settings)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "gemini_pro_configured": bool(settings.gemini_pro_api_key),
    }


def run():
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
