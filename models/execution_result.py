# models/execution_result.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shared import time


class ExecutionResult(BaseModel):
    success: bool
    action_type: Optional[str] = Field(default=None, alias="actionType")
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    code: Optional[str] = None          # error taxonomy code, see actions/errors.py
    skipped: bool = False               # terminal action re-submitted, nothing executed
    timestamp: datetime = Field(default_factory=time.utcnow)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @classmethod
    def ok(cls, action_type: Optional[str], data: Dict[str, Any]) -> "ExecutionResult":
        return cls(success=True, action_type=action_type, data=data)

    @classmethod
    def fail(cls, action_type: Optional[str], error: str, code: Optional[str] = None) -> "ExecutionResult":
        return cls(success=False, action_type=action_type, error=error or "Unknown error", code=code)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class BatchSummary(BaseModel):
    total: int = 0
    succeeded: int = 0
    failed: int = 0

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def counts_add_up(self) -> "BatchSummary":
        if self.succeeded + self.failed != self.total:
            raise ValueError("succeeded + failed must equal total")
        return self


class BatchResult(BaseModel):
    results: List[ExecutionResult] = Field(default_factory=list)
    summary: BatchSummary = Field(default_factory=BatchSummary)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def summary_matches_results(self) -> "BatchResult":
        if self.summary.total != len(self.results):
            raise ValueError("summary.total must equal the number of results")
        return self

    @classmethod
    def from_results(cls, results: List[ExecutionResult]) -> "BatchResult":
        succeeded = sum(1 for r in results if r.success)
        summary = BatchSummary(total=len(results), succeeded=succeeded, failed=len(results) - succeeded)
        return cls(results=list(results), summary=summary)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "results": [r.to_wire() for r in self.results],
            "summary": self.summary.model_dump(),
        }
