from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# =========================
# ROWS
# =========================
# One scalar per column; nested objects and arrays are rejected at the boundary
RawValue = Union[bool, int, float, str, None]


# Column -> raw value mapping from a create/update body, in request order
RowPayload = Dict[str, RawValue]


# =========================
# MUTATIONS
# =========================
class CreateResult(BaseModel):
    success: bool
    id: Any = None


class MutationResult(BaseModel):
    success: bool
    rows_affected: int = Field(alias="rowsAffected")
    message: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


# =========================
# REPORTS
# =========================
class ReportFilters(BaseModel):
    """
    Optional report filters. Field aliases are the wire names; which ones are
    set decides the SQL variant a report runs.
    """

    date_from: Optional[str] = Field(default=None, alias="from")
    date_to: Optional[str] = Field(default=None, alias="to")
    year: Optional[int] = None
    month: Optional[int] = None
    q: Optional[str] = None
    is_confirmed: Optional[bool] = Field(default=None, alias="isConfirmed")

    model_config = ConfigDict(populate_by_name=True)

    def as_filters(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# =========================
# HEALTH
# =========================
class HealthResponse(BaseModel):
    status: str
    database: str
