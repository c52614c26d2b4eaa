"""Solve orchestration: normalize a reply, extract its solution, never raise."""
from __future__ import annotations

import asyncio

from core.logger import logger
from services.solver.models import SolutionResult
from services.solver.normalizer import normalize
from services.solver.response_parser import extract_solution

SOLVE_FAILED_RESULT = "Error solving equation"
SOLVE_FAILED_ERROR = "Failed to process this equation. Please try again."


def solve(equation_or_response: str) -> SolutionResult:
    """Normalize then extract; unexpected faults become an error-bearing result."""
    try:
        cleaned = normalize(equation_or_response)
        return extract_solution(cleaned)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Error solving equation: %s", exc)
        return SolutionResult(
            original=str(equation_or_response),
            steps=(),
            result=SOLVE_FAILED_RESULT,
            error=SOLVE_FAILED_ERROR,
        )


class MathSolver:
    """Parse recognizer replies or typed equations into solution records."""

    def solve(self, equation_or_response: str) -> SolutionResult:
        logger.info("Solving input (%d chars)", len(equation_or_response or ""))
        solution = solve(equation_or_response)
        if solution.error:
            logger.warning("Solve finished with error: %s", solution.error)
        else:
            logger.info("Solved: %d step(s), result=%r", len(solution.steps), solution.result)
        return solution

    async def solve_async(self, equation_or_response: str) -> SolutionResult:
        """Same as :meth:`solve`, run in a worker thread for async callers."""
        return await asyncio.to_thread(self.solve, equation_or_response)
