"""
Remote math recognizer backed by an OpenAI-compatible chat endpoint.

Sends an image (or a typed equation) to a generative model and returns its
free-form reply for the response parser. By default the client points at
Google's OpenAI-compatible Gemini endpoint; any compatible provider works by
changing ``AIRMATH_BASE_URL`` and ``AIRMATH_MODEL``.

Usage:
    from services.recognizer.ai_recognizer import MathRecognizer

    recognizer = MathRecognizer(api_key="your-key")
    reply = recognizer.recognize_image(image_base64)
    if reply.error is None:
        solution = solve(reply.text)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from openai import APIError, OpenAI

from core.config import settings
from core.logger import logger
from utils.image_utils import strip_data_url

ANSWER_TEMPLATE = (
    "Format the answer exactly like this, using $...$ around every math expression:\n"
    "**Equation:** $<the equation>$\n"
    "**Steps to Solve:**\n"
    "1. **<short step title>:** $<expression after this step>$\n"
    "2. **<short step title>:** $<expression after this step>$\n"
    "**Final Answer:** $<final answer>$\n"
    "If there is no mathematical equation, reply only with: No equation detected"
)

IMAGE_PROMPT = (
    "Extract and solve the mathematical equation in this image. Return only the "
    "equation, the steps to solve it, and the final answer. Format it correctly "
    "for LaTeX.\n\n" + ANSWER_TEMPLATE
)

TEXT_PROMPT = (
    "Solve the following mathematical equation step by step. Return only the "
    "equation, the steps to solve it, and the final answer. Format it correctly "
    "for LaTeX.\n\nEquation: {equation}\n\n" + ANSWER_TEMPLATE
)


@dataclass(frozen=True)
class RecognizerResponse:
    """Outcome of one remote call; ``text`` is empty when ``error`` is set."""

    text: str
    error: Optional[str] = None


class MathRecognizer:
    """Recognize and solve math with a remote generative model."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[OpenAI] = None,
    ):
        """
        Initialize the recognizer.

        Args:
            api_key: API key (or set AIRMATH_API_KEY / GEMINI_API_KEY)
            model: Model name (defaults to settings.ai_model)
            base_url: OpenAI-compatible endpoint (defaults to settings.ai_base_url)
            timeout: Request timeout in seconds
            client: Pre-built OpenAI client, mainly for tests
        """
        self.model = model or settings.ai_model
        self.timeout = timeout if timeout and timeout > 0 else settings.ai_timeout
        self.temperature = settings.ai_temperature
        self.top_p = settings.ai_top_p
        self.max_tokens = settings.ai_max_tokens

        if client is not None:
            self.client = client
            return

        self.api_key = api_key or settings.ai_api_key
        if not self.api_key:
            raise ValueError(
                "Recognizer API key required. Set AIRMATH_API_KEY env var or pass api_key parameter"
            )

        self.client = OpenAI(
            api_key=self.api_key,
            base_url=base_url or settings.ai_base_url,
            http_client=httpx.Client(timeout=self.timeout),
        )
        logger.info(f"Math recognizer initialized (model: {self.model})")

    def recognize_image(self, image_base64: str, mime_type: str = "image/jpeg") -> RecognizerResponse:
        """Send an image to the model for recognition and solving."""
        data = strip_data_url(image_base64)
        logger.info("Sending image to recognizer (%d base64 chars)", len(data))
        content: List[Dict[str, Any]] = [
            {"type": "text", "text": IMAGE_PROMPT},
            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{data}"}},
        ]
        return self._complete(content)

    def solve_text(self, equation: str) -> RecognizerResponse:
        """Send a typed equation to the model for a worked solution."""
        logger.info("Sending equation to recognizer: %s", equation)
        return self._complete(TEXT_PROMPT.format(equation=equation))

    def _complete(self, content: Any) -> RecognizerResponse:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": content}],
                temperature=self.temperature,
                top_p=self.top_p,
                max_tokens=self.max_tokens,
            )
        except APIError as exc:
            logger.error(f"Recognizer API error: {exc}")
            return RecognizerResponse(text="", error="Failed to analyze input with the recognizer API")

        if not response.choices:
            logger.error("No response from recognizer API")
            return RecognizerResponse(text="", error="No response from recognizer API")

        text = response.choices[0].message.content or ""
        if not text.strip():
            return RecognizerResponse(text="", error="Empty response from recognizer API")

        logger.debug("[RAW RECOGNIZER OUTPUT]\n%s", text)
        return RecognizerResponse(text=text)
