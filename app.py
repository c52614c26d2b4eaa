"""Application entry point for the AirMath solver API using FastAPI."""
from __future__ import annotations

import asyncio
from dataclasses import asdict
from typing import Any, Literal, Optional

import uvicorn
from fastapi import FastAPI, File, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.config import settings
from core.logger import init_logging, logger
from services.formatting import format_equation_text, format_latex, format_result_text
from services.history.history_store import HistoryStore
from services.ocr.ocr_cleaner import clean_math_expression
from services.recognizer.ai_recognizer import MathRecognizer
from services.solver.math_solver import MathSolver
from services.solver.models import SolutionResult
from utils.file_utils import ensure_directories
from utils.image_utils import prepare_image_payload


class SolveRequest(BaseModel):
    """Text to solve: a typed equation, OCR text or a recognizer reply."""

    equation: str
    source: Literal["text", "ocr", "response"] = "text"
    use_recognizer: bool = False


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"status": "error", "message": message}, status_code=status_code)


def _solution_payload(solution: SolutionResult) -> dict[str, Any]:
    return {
        "status": "success",
        "solution": solution.to_dict(),
        "original_latex": format_latex(solution.original),
    }


def create_app(
    solver: Optional[MathSolver] = None,
    recognizer: Optional[MathRecognizer] = None,
    history: Optional[HistoryStore] = None,
) -> FastAPI:
    """Create FastAPI app with solve, recognize and history routes."""
    app = FastAPI(title="AirMath Solver", version="0.1.0")

    solver = solver or MathSolver()
    history = history or HistoryStore()
    if recognizer is None and settings.ai_api_key:
        recognizer = MathRecognizer()

    def remember(equation: str, solution: SolutionResult) -> None:
        if solution.error:
            return
        try:
            history.save(equation, solution.result)
        except OSError as exc:
            logger.warning(f"Failed to save history entry: {exc}")

    @app.on_event("startup")
    async def startup_event() -> None:
        init_logging()
        ensure_directories()
        logger.info("FastAPI service started")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/solve")
    async def solve_equation(request: SolveRequest) -> JSONResponse:
        """Solve typed or OCR text, optionally asking the recognizer for the working."""
        text = request.equation
        if request.source == "ocr":
            text = clean_math_expression(text)

        if request.use_recognizer:
            if recognizer is None:
                return _error("Recognizer is not configured", 503)
            try:
                reply = await asyncio.to_thread(recognizer.solve_text, text)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Recognizer call failed: %s", exc)
                return _error(str(exc), 500)
            if reply.error:
                return _error(reply.error, 502)
            text = reply.text

        solution = await solver.solve_async(text)
        remember(request.equation, solution)
        return JSONResponse(_solution_payload(solution))

    @app.post("/recognize")
    async def recognize_image(file: UploadFile = File(...)) -> JSONResponse:
        """Recognize and solve the equation in an uploaded image."""
        if recognizer is None:
            return _error("Recognizer is not configured", 503)

        content = await file.read()
        try:
            image_base64, mime_type = prepare_image_payload(content)
        except ValueError as exc:
            logger.warning(f"Rejected upload {file.filename}: {exc}")
            return _error(str(exc), 400)

        try:
            reply = await asyncio.to_thread(recognizer.recognize_image, image_base64, mime_type)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Recognition failed: %s", exc)
            return _error(str(exc), 500)
        if reply.error:
            return _error(reply.error, 502)

        solution = await solver.solve_async(reply.text)
        remember(solution.original, solution)
        return JSONResponse(_solution_payload(solution))

    @app.get("/history")
    async def list_history() -> dict[str, list[dict[str, Any]]]:
        entries = []
        for entry in history.list():
            item = asdict(entry)
            item["display_equation"] = format_equation_text(entry.equation)
            item["display_result"] = format_result_text(entry.result)
            entries.append(item)
        return {"entries": entries}

    @app.delete("/history/{entry_id}")
    async def delete_history_entry(entry_id: str) -> JSONResponse:
        if not history.delete(entry_id):
            return _error(f"History entry not found: {entry_id}", 404)
        return JSONResponse({"status": "deleted", "id": entry_id})

    @app.delete("/history")
    async def clear_history() -> dict[str, str]:
        history.clear()
        return {"status": "cleared"}

    return app


def main() -> None:
    """Entry point for CLI; starts the FastAPI server."""
    init_logging()
    ensure_directories()
    logger.info("Starting FastAPI server at %s:%s", settings.host, settings.port)
    uvicorn.run(create_app(), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
