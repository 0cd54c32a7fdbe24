"""Step outcomes reported by the scaffolding pipeline."""
from dataclasses import dataclass
from enum import Enum


class Outcome(Enum):
    """Result of an idempotent step that did not fail."""
    APPLIED = "applied"
    SKIPPED = "skipped"  # Target already present or nothing to change


@dataclass(frozen=True)
class StepResult:
    """Outcome of one orchestrator step."""
    step: str
    outcome: Outcome
    detail: str = ""

    @property
    def skipped(self) -> bool:
        return self.outcome is Outcome.SKIPPED
