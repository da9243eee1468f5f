"""
Models for the outcome of an orchestration run.
"""
from typing import Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum


class Phase(str, Enum):
    """Orchestration pass applied to the whole plan."""

    CREATE = "create"
    START = "start"


class ProvisionOutcome(str, Enum):
    """What happened to one container during a phase."""

    CREATED = "created"
    SKIPPED_EXISTS = "skipped-exists"
    STARTED = "started"
    SKIPPED_RUNNING = "skipped-running"
    FAILED = "failed"

    @property
    def skipped(self) -> bool:
        return self in (ProvisionOutcome.SKIPPED_EXISTS, ProvisionOutcome.SKIPPED_RUNNING)


@dataclass(frozen=True)
class ProvisionResult:
    """Outcome for a single container."""

    name: str
    outcome: ProvisionOutcome
    reason: Optional[str] = None


@dataclass
class RunResult:
    """
    Aggregated outcome of one phase over an ordered plan.

    ``results`` holds one entry per container actually processed, in plan
    order. A run that hit a fatal error stops there, so ``len(results)`` may
    be smaller than ``total``.
    """

    phase: Phase
    total: int
    results: List[ProvisionResult] = field(default_factory=list)
    error: Optional[Exception] = None

    def record(self, result: ProvisionResult) -> None:
        self.results.append(result)

    def count(self, outcome: ProvisionOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    def counts(self) -> Dict[ProvisionOutcome, int]:
        return {outcome: self.count(outcome) for outcome in ProvisionOutcome}

    @property
    def created(self) -> int:
        return self.count(ProvisionOutcome.CREATED)

    @property
    def started(self) -> int:
        return self.count(ProvisionOutcome.STARTED)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.outcome.skipped)

    @property
    def failed(self) -> int:
        return self.count(ProvisionOutcome.FAILED)

    @property
    def ok(self) -> bool:
        return self.error is None

    def summary(self) -> str:
        """
        One-line report, e.g. ``Total: 3 (2 created / 1 skipped)``.
        """
        if self.phase == Phase.CREATE:
            done, verb = self.created, "created"
        else:
            done, verb = self.started, "started"
        line = f"Total: {self.total} ({done} {verb} / {self.skipped} skipped)"
        if self.failed:
            line += f", {self.failed} failed"
        return line
