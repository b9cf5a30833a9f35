"""Pydantic models for outcome recording."""

from pydantic import BaseModel, Field


class OutcomeRequest(BaseModel):
    """Result of presenting an arm once."""

    success: bool = Field(..., description="Whether the presentation succeeded")

    model_config = {"json_schema_extra": {"examples": [{"success": True}]}}


class OutcomeResponse(BaseModel):
    """Arm counters right after the outcome was applied."""

    arm_id: str
    successes: int = Field(..., ge=0)
    failures: int = Field(..., ge=0)
