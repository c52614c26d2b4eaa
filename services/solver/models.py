"""Solution records produced by the response parser."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class SolutionStep:
    """One worked step: a label and the expression it leads to."""

    explanation: str
    expression: str

    def to_dict(self) -> dict[str, str]:
        return {"explanation": self.explanation, "expression": self.expression}


@dataclass(frozen=True)
class SolutionResult:
    """Structured solution built from a single recognizer reply.

    ``error`` is only set when the reply carried an explicit "no equation"
    signal or when solving failed unexpectedly; ``steps`` is then empty.
    """

    original: str
    steps: Tuple[SolutionStep, ...] = field(default_factory=tuple)
    result: str = ""
    error: Optional[str] = None
    graph: bool = False

    def to_dict(self) -> dict[str, Any]:
        """JSON shape used by the API and history layers."""
        data: dict[str, Any] = {
            "original": self.original,
            "steps": [step.to_dict() for step in self.steps],
            "result": self.result,
            "graph": self.graph,
        }
        if self.error is not None:
            data["error"] = self.error
        return data
