from fastapi import FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from contextlib import asynccontextmanager
import logging
import os
import uuid

# Local imports
from app.core.config import settings
from app.api.routes import router as api_router
from app.logging import configure_logging
from app.middleware.logging import LoggingMiddleware
from app.models.dto import HealthResponse
from app.services.cell_store import build_cell_store
from app.services.geo_resolver import build_geo_resolver

configure_logging()
logger = logging.getLogger(__name__)

# --- Application Lifecycle Management ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Application startup: v{settings.VERSION}")

    # The counter store is owned by this process; counts start empty and are lost on exit.
    app.state.cell_store = build_cell_store(settings)
    app.state.geo_resolver = build_geo_resolver(settings)
    logger.info(
        f"Cell store ready ({type(app.state.cell_store).__name__}), grid step {settings.CELL_SIZE_DEG} deg."
    )

    yield

    logger.info("Application shutdown: Cleaning up resources.")
    close = getattr(app.state.cell_store, "close", None)
    if close is not None:
        await close()

# --- FastAPI Application Initialization ---
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.BRIEF_DESCRIPTION,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
)

app.add_middleware(LoggingMiddleware)

# --- Static Files and Templates ---
static_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "static"))
templates_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "templates"))
app.mount("/static", StaticFiles(directory=static_dir), name="static")
templates = Jinja2Templates(directory=templates_dir)

# --- API Routes ---
app.include_router(api_router, prefix="/api")

# --- Pages ---
@app.get("/", response_class=HTMLResponse)
async def root(request: Request):
    # The text field never leaves the browser; only an optional cell hint is posted.
    return templates.TemplateResponse(request, "index.html", {"settings": settings})

@app.get("/map", response_class=HTMLResponse)
async def heatmap(request: Request):
    return templates.TemplateResponse(request, "map.html", {"settings": settings})

# --- Health Check Endpoint ---
@app.get("/health", status_code=status.HTTP_200_OK, response_model=HealthResponse)
async def health_check(request: Request):
    cells = await request.app.state.cell_store.snapshot()
    return HealthResponse(status="ok", cells=len(cells))

# --- Global Exception Handler (for unhandled errors) ---
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_id = str(uuid.uuid4())
    logger.error(f"Unhandled exception (ID: {error_id}): {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": {
                "error": "INTERNAL_SERVER_ERROR",
                "detail": "An unexpected error occurred. Please report this error ID.",
                "error_id": error_id
            }
        }
    )
