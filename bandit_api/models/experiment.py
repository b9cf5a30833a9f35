"""Pydantic models for experiments and arms."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class ArmCreate(BaseModel):
    """Schema for creating an arm."""

    name: str = Field(..., min_length=1, max_length=255, description="Arm name")
    description: Optional[str] = Field(None, description="Arm description")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"name": "Blue Button", "description": "Control"},
                {"name": "Red Button", "description": "Variant"},
            ]
        }
    }


class ArmResponse(BaseModel):
    """Schema for arm response."""

    id: str
    experiment_id: str
    name: str
    description: Optional[str]
    successes: int = Field(..., ge=0)
    failures: int = Field(..., ge=0)
    created_at: datetime
    updated_at: datetime


class ExperimentCreate(BaseModel):
    """
    Schema for creating an experiment.

    Arms are given either explicitly (`arms`) or by count (`num_arms`), in
    which case they are named "Arm 1" .. "Arm N".
    """

    name: str = Field(..., min_length=1, max_length=255, description="Experiment name")
    description: Optional[str] = Field(None, description="Experiment description")
    arms: Optional[list[ArmCreate]] = Field(
        None, min_length=1, description="Arms to compare"
    )
    num_arms: Optional[int] = Field(
        None, ge=1, le=100, description="Number of generic arms to create"
    )

    @model_validator(mode="after")
    def validate_arm_source(self) -> "ExperimentCreate":
        """Ensure exactly one of arms / num_arms is given, then fill arms."""
        if (self.arms is None) == (self.num_arms is None):
            raise ValueError("Provide exactly one of 'arms' or 'num_arms'")
        if self.arms is None:
            self.arms = [
                ArmCreate(name=f"Arm {i}", description=f"Description for arm {i}")
                for i in range(1, self.num_arms + 1)
            ]
        return self

    @model_validator(mode="after")
    def validate_unique_names(self) -> "ExperimentCreate":
        """Ensure arm names are unique within the experiment."""
        names = [arm.name for arm in self.arms or []]
        if len(names) != len(set(names)):
            raise ValueError("Arm names must be unique within an experiment")
        return self

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "checkout_button_color",
                    "description": "A/B test for button color",
                    "arms": [
                        {"name": "Blue Button", "description": "Control"},
                        {"name": "Red Button", "description": "Variant"},
                    ],
                },
                {"name": "hero_image", "num_arms": 3},
            ]
        }
    }


class ExperimentResponse(BaseModel):
    """Schema for experiment response."""

    id: str
    name: str
    description: Optional[str]
    arms: list[ArmResponse]
    created_at: datetime
    updated_at: datetime
