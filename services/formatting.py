"""Display helpers for equations, results and history entries."""
from __future__ import annotations

import re

_BOLD_LABEL_RE = re.compile(r"\*\*[^*]+:\*\*")
_RESULT_PHRASE_RE = re.compile(r"(?:=\s*|result\s*is\s*|answer\s*is\s*)([^.]+)", re.IGNORECASE)


def format_latex(equation: str) -> str:
    """Turn plain calculator notation into LaTeX (sqrt, powers, digit fractions, int)."""
    formatted = equation
    formatted = re.sub(r"sqrt\(([^)]+)\)", r"\\sqrt{\1}", formatted)
    formatted = re.sub(r"\^(\d+)", r"^{\1}", formatted)
    formatted = re.sub(r"(\d+)/(\d+)", r"\\frac{\1}{\2}", formatted)
    formatted = re.sub(r"(?<![\\\w])int\s", r"\\int ", formatted)
    return formatted


def format_equation_text(text: str) -> str:
    """Remove markdown emphasis such as ``**Equation:**`` labels before rendering."""
    if not text:
        return ""
    text = _BOLD_LABEL_RE.sub("", text)
    return text.replace("**", "").strip()


def format_result_text(text: str) -> str:
    """Keep only the final value of a result sentence when one can be found."""
    if not text:
        return ""

    match = _RESULT_PHRASE_RE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    text = text.replace("**", "")
    text = re.sub(r"Result:|\s+", " ", text)
    return text.strip()
