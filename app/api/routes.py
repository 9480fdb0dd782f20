# app/api/routes.py
# Submission, snapshot and header-echo endpoints. Mounted under /api.

from fastapi import APIRouter, Request, HTTPException, status, Depends
from fastapi.responses import Response
from starlette.requests import ClientDisconnect
import logging
from typing import Dict, Optional

# Local imports
from app.core.config import settings
from app.models.dto import (
    EtherSubmission,
    SnapshotResponse,
    ErrorResponse,
)
from app.services.cell_store import CellCounterStore
from app.services.geo_resolver import GeoResolver, GeoSignals

router = APIRouter()
logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------
# Dependencies (built once in the application lifespan)
# ----------------------------------------------------------------------
def get_cell_store(request: Request) -> CellCounterStore:
    return request.app.state.cell_store

def get_geo_resolver(request: Request) -> GeoResolver:
    return request.app.state.geo_resolver

async def read_submission(request: Request) -> Optional[EtherSubmission]:
    """Parse the optional JSON body. Anything unreadable counts as no body."""
    try:
        raw = await request.body()
    except ClientDisconnect:
        logger.info("Client disconnected before the submission body was read.")
        return None
    if not raw.strip():
        return None
    try:
        return EtherSubmission.model_validate_json(raw)
    except ValueError:
        # pydantic's ValidationError covers invalid JSON and wrong shapes
        logger.info("Ignoring malformed submission body.")
        return None

# ----------------------------------------------------------------------
# Ether Endpoints
# ----------------------------------------------------------------------
@router.post("/ether", status_code=status.HTTP_204_NO_CONTENT)
async def submit_to_ether(
    request: Request,
    store: CellCounterStore = Depends(get_cell_store),
    resolver: GeoResolver = Depends(get_geo_resolver),
):
    """Count one anonymous submission against its coarse cell, if one can be found.

    The response is always 204 so the caller never learns whether a cell was recorded.
    """
    submission = await read_submission(request)
    signals = GeoSignals.from_request_parts(submission, request.headers, settings)
    cell, source = resolver.resolve_with_source(signals)

    if cell is not None:
        await store.increment(cell)
        logger.info(f"Recorded submission in cell {cell} (source: {source}).")
    else:
        logger.info("Submission had no usable geo signal; nothing recorded.")

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/ether", response_model=SnapshotResponse)
async def ether_snapshot(
    response: Response,
    store: CellCounterStore = Depends(get_cell_store),
):
    """Every cell seen by this instance with its count. Order is unspecified."""
    response.headers["Cache-Control"] = "no-store"
    return SnapshotResponse(data=await store.snapshot())

# ----------------------------------------------------------------------
# Debug Endpoint
# ----------------------------------------------------------------------
@router.get(
    "/debug-geo",
    responses={404: {"model": ErrorResponse}},
)
async def debug_geo(request: Request, response: Response) -> Dict[str, Optional[str]]:
    """Echo the edge network's IP geolocation headers. Read-only."""
    if not settings.ENABLE_DEBUG_GEO:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ErrorResponse(
                error="NOT_FOUND",
                detail="Geo header diagnostics are disabled.",
            ).model_dump(),
        )

    response.headers["Cache-Control"] = "no-store"
    wanted = [
        settings.GEO_COUNTRY_HEADER,
        settings.GEO_CITY_HEADER,
        settings.GEO_LATITUDE_HEADER,
        settings.GEO_LONGITUDE_HEADER,
        settings.GEO_TIMEZONE_HEADER,
    ]
    return {name: request.headers.get(name) for name in wanted}
