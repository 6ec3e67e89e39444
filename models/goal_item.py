from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from shared import time

GoalPriority = Literal["low", "medium", "high"]


def _lower(v):
    return v.lower() if isinstance(v, str) else v


class GoalItem(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    progress: int = Field(default=0, ge=0, le=100)
    priority: GoalPriority = "medium"
    deadline: Optional[datetime] = None

    model_config = {"extra": "forbid"}

    @field_validator("priority", mode="before")
    @classmethod
    def lower_priority(cls, v):
        return _lower(v)

    @field_validator("deadline", mode="before")
    @classmethod
    def deadline_to_utc(cls, v):
        return time.parse_to_utc(v)

    @model_validator(mode="after")
    def default_description(self) -> "GoalItem":
        if not self.description:
            self.description = f"Goal: {self.title}"
        return self


class GoalPatch(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    priority: Optional[GoalPriority] = None
    deadline: Optional[datetime] = None

    model_config = {"extra": "forbid"}

    @field_validator("priority", mode="before")
    @classmethod
    def lower_priority(cls, v):
        return _lower(v)

    @field_validator("deadline", mode="before")
    @classmethod
    def deadline_to_utc(cls, v):
        return time.parse_to_utc(v)
