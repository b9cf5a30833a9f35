"""Pydantic models for per-arm statistics."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ConfidenceInterval(BaseModel):
    """95% credible interval."""

    lower: float = Field(..., description="Lower bound (2.5 percentile)")
    upper: float = Field(..., description="Upper bound (97.5 percentile)")


class ArmStats(BaseModel):
    """
    Statistics for a single arm.

    success_rate is the raw observed rate; posterior_mean and
    credible_interval come from the arm's Beta posterior.
    """

    arm_id: str
    name: str
    description: Optional[str] = None
    successes: int = Field(..., ge=0)
    failures: int = Field(..., ge=0)
    trials: int = Field(..., ge=0, description="successes + failures")
    success_rate: float = Field(..., description="successes / trials (0 when untried)")
    posterior_mean: float = Field(..., description="Mean of the Beta posterior")
    credible_interval: ConfidenceInterval
    probability_best: float = Field(
        ..., ge=0, le=1, description="Estimated chance this arm has the highest draw"
    )


class ExperimentStatsResponse(BaseModel):
    """Schema for experiment statistics response."""

    experiment_id: str
    experiment_name: str
    computed_at: datetime
    algorithm: str = Field(default="thompson_sampling")
    arms: list[ArmStats]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "experiment_id": "0b6f3c1e-5a1d-4a0e-9e43-8f5e1b8a2f10",
                    "experiment_name": "checkout_button_color",
                    "computed_at": "2025-01-16T00:00:00Z",
                    "algorithm": "thompson_sampling",
                    "arms": [
                        {
                            "arm_id": "2d1c7a4b-0f6e-4a43-a1f8-6c0d8e7b5a21",
                            "name": "Blue Button",
                            "successes": 12,
                            "failures": 88,
                            "trials": 100,
                            "success_rate": 0.12,
                            "posterior_mean": 0.1275,
                            "credible_interval": {"lower": 0.0718, "upper": 0.1973},
                            "probability_best": 0.18,
                        },
                    ],
                }
            ]
        }
    }
