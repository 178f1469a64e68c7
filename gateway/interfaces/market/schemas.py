"""
Pydantic schemas for gateway API request/response validation.

These schemas define the API contract for the endpoints that produce
their own JSON (deals, research, health). Pass-through data endpoints
relay upstream payloads and have no schema.
No business logic belongs here.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error body."""

    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Response schema for the health endpoint."""

    status: str
    version: str
    financial_api_configured: bool
    completion_configured: bool


class DealItem(BaseModel):
    """A normalized deal. Every key is always present, possibly null."""

    model_config = ConfigDict(populate_by_name=True)

    acquirer: str
    target: str
    value: Optional[str] = None
    value_number: Optional[float] = Field(default=None, serialization_alias="valueNumber")
    sector: Optional[str] = None
    region: str
    date: Optional[str] = None
    source: Optional[str] = None
    image: Optional[str] = None
    summary: Optional[str] = None
    type: str = "M&A"


class ResearchSummaryRequest(BaseModel):
    """Request schema for the research summary endpoint.

    Attributes:
        ticker: Symbol or company name (``symbol`` is accepted as an alias).
        mode: ``short`` (default) or ``detailed``.
    """

    ticker: Optional[str] = Field(default=None, max_length=64)
    symbol: Optional[str] = Field(default=None, max_length=64)
    mode: Optional[str] = Field(default=None, max_length=16)


class CitationItem(BaseModel):
    """A citation returned by the model or the provider."""

    source: Optional[str] = None
    url: Optional[str] = None


class ResearchSummaryResponse(BaseModel):
    """Response schema for the research summary endpoint.

    ``status`` is ``full``, ``partial_no_model`` or ``partial_model_failed``.
    """

    ticker: str
    mode: str
    status: str
    one_liner: Optional[str] = None
    summary: Optional[str] = None
    citations: Optional[list[CitationItem]] = None
    source_snapshot: dict[str, Any]
    raw_model_output: Any = None
    model: Optional[str] = None
    detail: Optional[str] = None
