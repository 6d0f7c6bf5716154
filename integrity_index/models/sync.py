"""
Sync run result models.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class SyncTask(str, Enum):
    """Individually triggerable sync steps, in execution order."""
    DISCLOSURES = "disclosures"
    QUOTES = "quotes"
    BILLS = "bills"
    ROSTER = "roster"
    SLUGS = "slugs"
    COMMITTEES = "committees"
    AUDIT = "audit"


class StepResult(BaseModel):
    step: str
    ok: bool
    detail: Optional[str] = None


class SyncResult(BaseModel):
    """Outcome of one orchestrator run; ``ok`` is the AND of every step."""
    ok: bool
    steps: List[StepResult] = Field(default_factory=list)

    @classmethod
    def from_steps(cls, steps: List[StepResult]) -> "SyncResult":
        return cls(ok=all(step.ok for step in steps), steps=steps)

    def step(self, name: str) -> Optional[StepResult]:
        for result in self.steps:
            if result.step == name:
                return result
        return None
