from pydantic import BaseModel, Field
from typing import List, Optional

# --- API Request Models ---

class EtherSubmission(BaseModel):
    """Optional JSON body of POST /api/ether. Unknown keys (e.g. `at`) are ignored."""
    cell: Optional[str] = Field(None, description="Client pre-quantized cell, e.g. '51.4,-0.2'.")

# --- Public Data Transfer Objects (DTOs) ---

class CellCount(BaseModel):
    """One aggregated grid cell."""
    cell: str = Field(..., description="Cell key of the form 'N.N,N.N'.")
    count: int = Field(..., ge=0, description="Number of submissions attributed to the cell.")

class SnapshotResponse(BaseModel):
    """Public DTO for the GET /api/ether response."""
    data: List[CellCount] = Field(default_factory=list, description="Every cell seen by this instance.")

class HealthResponse(BaseModel):
    status: str
    cells: int

# --- Error Response Model ---

class ErrorResponse(BaseModel):
    """Standardized error response model."""
    error: str = Field(..., description="A machine-readable error code.")
    detail: str = Field(..., description="A human-readable explanation.")
