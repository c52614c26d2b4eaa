# services/solver/response_parser.py
"""
Structured extraction of a worked solution from a free-form recognizer reply.

The remote model is asked for a template like::

    **Equation:** $2x+3=7$
    **Steps to Solve:**
    1. **Subtract 3:** $2x=4$
    2. **Divide by 2:** $x=2$
    **Final Answer:** $x=2$

but nothing guarantees it follows it. Each field (equation, result, steps) is
therefore read through an ordered table of ExtractionRule tiers; the first tier
that yields a non-blank match wins and weaker tiers are only tried when the
stronger ones miss.

Heuristic policy: when no label identifies the answer, the LAST delimited
expression of the reply is taken as the result, and within a step the LAST
delimited expression is taken as that step's outcome. Replies usually end each
block with the simplified form, but this is a tie-break, not a guarantee.
"""

from __future__ import annotations

import re
from typing import List, NamedTuple, Optional, Sequence, Tuple

from core.logger import logger
from services.solver.models import SolutionResult, SolutionStep

# Case-insensitive substrings meaning the recognizer found nothing to solve
NEGATIVE_SIGNALS = (
    "no equation detected",
    "image is blank",
    "no equation",
    "cannot identify",
)

RESULT_NOT_FOUND = "Could not extract result"
NO_EQUATION_ORIGINAL = "No equation detected"
NO_EQUATION_RESULT = "No equation found"
NO_EQUATION_ERROR = "No mathematical equation was detected in the input."

SOLUTION_PROCESS_LABEL = "Solution process"
GENERIC_STEP_LABEL = "Equation processing"

# One inline math span: $...$, no nested '$', shortest match
_MATH = r"\$([^$]+?)\$"
DELIMITED_MATH_RE = re.compile(_MATH)

_EMPHASIS_RE = re.compile(r"\*+")
_WHITESPACE_RE = re.compile(r"\s+")


class ExtractionRule(NamedTuple):
    """A named fallback tier: group 1 (or the first matched group) is the value."""

    name: str
    pattern: re.Pattern


def _bold(label: str) -> str:
    # **Label:** or **Label**:
    return rf"\*\*{label}(?::\*\*|\*\*:)"


def _italic(label: str) -> str:
    # *Label:* or *Label*:, not part of a bold run
    return rf"(?<!\*)\*{label}(?::\*(?!\*)|\*:)"


def _any_emphasis(label: str) -> str:
    # Label:, **Label:**, **Label**:, *Label:*
    return rf"\*{{0,2}}\b{label}\*{{0,2}}:\*{{0,2}}"


EQUATION_RULES: Tuple[ExtractionRule, ...] = (
    ExtractionRule("bold_label", re.compile(_bold("Equation") + r"\s*" + _MATH, re.I)),
    ExtractionRule("plain_label", re.compile(r"\bEquation:\s*" + _MATH, re.I)),
    ExtractionRule("italic_label", re.compile(_italic("Equation") + r"\s*" + _MATH, re.I)),
    ExtractionRule("first_delimited", DELIMITED_MATH_RE),
)

RESULT_RULES: Tuple[ExtractionRule, ...] = (
    ExtractionRule("bold_final_answer", re.compile(_bold("Final Answer") + r"\s*" + _MATH, re.I)),
    ExtractionRule("plain_final_answer", re.compile(r"\bFinal Answer:\s*" + _MATH, re.I)),
    ExtractionRule("italic_final_answer", re.compile(_italic("Final Answer") + r"\s*" + _MATH, re.I)),
    ExtractionRule("result_label", re.compile(_any_emphasis("Result") + r"\s*" + _MATH, re.I)),
    ExtractionRule("answer_label", re.compile(_any_emphasis("Answer") + r"\s*" + _MATH, re.I)),
)

# A steps section ends at the next "Final Answer:" label or at the end of text
_SECTION_END = r"(?=\*{0,2}Final Answer\*{0,2}:|\Z)"

STEP_SECTION_RULES: Tuple[ExtractionRule, ...] = (
    ExtractionRule("bold_steps_to_solve", re.compile(_bold("Steps to Solve") + r"(.*?)" + _SECTION_END, re.I | re.S)),
    ExtractionRule("plain_steps_to_solve", re.compile(r"\bSteps to Solve:(.*?)" + _SECTION_END, re.I | re.S)),
    ExtractionRule("bold_solution", re.compile(_bold("Solution") + r"(.*?)" + _SECTION_END, re.I | re.S)),
    ExtractionRule("plain_solution", re.compile(r"\bSolution:(.*?)" + _SECTION_END, re.I | re.S)),
)

STEP_MARKER_RULES: Tuple[ExtractionRule, ...] = (
    # 1. **Title**:
    ExtractionRule("numbered_bold", re.compile(r"\d+\.\s*\*\*([^*]+)\*\*:?")),
    # 1. Title:
    ExtractionRule("numbered_plain", re.compile(r"(?<![\w.])\d+\.\s+([^\s:*$=][^:*$=\n]{0,79}):")),
    # **Step 1**: / **Step 1: Isolate x**
    ExtractionRule("bold_step", re.compile(r"\*\*(Step\s*\d+[^*]*)\*\*:?", re.I)),
    # *Step 1*:
    ExtractionRule("italic_step", re.compile(r"(?<!\*)\*(Step\s*\d+[^*]*)\*(?!\*):?", re.I)),
    # Step 1:
    ExtractionRule("plain_step", re.compile(r"\b(Step\s*\d+)\s*:", re.I)),
    # any **Label:** / *Label*:
    ExtractionRule(
        "emphasis_label",
        re.compile(r"\*{1,2}([^*$\n]+?:)\*{1,2}|\*{1,2}([^*$\n]+?)\*{1,2}:"),
    ),
)


# -------------------------
# Rule-table interpreter
# -------------------------
def _first_group(match: re.Match) -> str:
    return next((g for g in match.groups() if g is not None), "")


def first_match(rules: Sequence[ExtractionRule], text: str) -> Optional[Tuple[str, re.Match]]:
    """Return (rule name, match) for the first tier with a non-blank capture."""
    for rule in rules:
        for match in rule.pattern.finditer(text):
            if _first_group(match).strip():
                return rule.name, match
    return None


def delimited_expressions(text: str) -> List[str]:
    """All non-blank $...$ spans of ``text`` in source order, trimmed."""
    return [m.strip() for m in DELIMITED_MATH_RE.findall(text) if m.strip()]


def strip_emphasis(text: str) -> str:
    return _EMPHASIS_RE.sub("", text)


def contains_negative_signal(text: str) -> bool:
    lowered = text.lower()
    return any(signal in lowered for signal in NEGATIVE_SIGNALS)


# -------------------------
# Field extraction
# -------------------------
def extract_equation(text: str) -> Tuple[str, Optional[re.Match]]:
    """Equation text and the match that produced it (None when the whole text is used)."""
    found = first_match(EQUATION_RULES, text)
    if found is None:
        logger.debug("[PARSER] No equation tier matched; using whole text")
        return text, None
    name, match = found
    logger.debug("[PARSER] Equation matched by tier %s", name)
    return _first_group(match).strip(), match


def extract_result(text: str) -> str:
    found = first_match(RESULT_RULES, text)
    if found is not None:
        name, match = found
        logger.debug("[PARSER] Result matched by tier %s", name)
        return _first_group(match).strip()

    expressions = delimited_expressions(text)
    if expressions:
        logger.debug("[PARSER] Result taken from last delimited expression")
        return expressions[-1]
    return RESULT_NOT_FOUND


def _step_expression(content: str) -> str:
    expressions = delimited_expressions(content)
    if expressions:
        return expressions[-1]
    return strip_emphasis(content).strip()


def split_steps(section: str) -> List[SolutionStep]:
    """Split a steps section using the first marker family that yields a step."""
    for rule in STEP_MARKER_RULES:
        markers = list(rule.pattern.finditer(section))
        steps: List[SolutionStep] = []
        for idx, marker in enumerate(markers):
            title = strip_emphasis(_first_group(marker)).strip()
            if not title:
                continue
            end = markers[idx + 1].start() if idx + 1 < len(markers) else len(section)
            steps.append(SolutionStep(title, _step_expression(section[marker.end():end])))
        if steps:
            logger.debug("[PARSER] %d step(s) split by marker family %s", len(steps), rule.name)
            return steps
    return []


def extract_steps(text: str) -> List[SolutionStep]:
    """Steps from a labelled section, else from the inner delimited expressions."""
    found = first_match(STEP_SECTION_RULES, text)
    if found is not None:
        name, match = found
        logger.debug("[PARSER] Steps section matched by tier %s", name)
        steps = split_steps(_first_group(match))
        if steps:
            return steps

    # First expression is taken as the equation and the last as the result
    inner = delimited_expressions(text)[1:-1]
    if inner:
        logger.info("[PARSER] No step markers found; using %d inner expression(s)", len(inner))
    return [SolutionStep(f"Step {idx}", expr) for idx, expr in enumerate(inner, start=1)]


def _placeholder_step(text: str, original: str, equation_match: re.Match) -> SolutionStep:
    remaining = text[:equation_match.start()] + " " + text[equation_match.end():]
    remaining = strip_emphasis(remaining).replace("$", "")
    remaining = _WHITESPACE_RE.sub(" ", remaining).strip()
    if remaining:
        return SolutionStep(SOLUTION_PROCESS_LABEL, remaining)
    return SolutionStep(GENERIC_STEP_LABEL, original)


# -------------------------
# Entry point
# -------------------------
def extract_solution(response: str) -> SolutionResult:
    """Derive original equation, ordered steps and final result from ``response``.

    Never raises for malformed text; missing fields fall back through their
    tiers down to the whole text (equation) or RESULT_NOT_FOUND (result).
    """
    text = response or ""

    if contains_negative_signal(text):
        logger.info("[PARSER] Recognizer reported no equation")
        return SolutionResult(
            original=NO_EQUATION_ORIGINAL,
            steps=(),
            result=NO_EQUATION_RESULT,
            error=NO_EQUATION_ERROR,
        )

    original, equation_match = extract_equation(text)
    result = extract_result(text)
    steps = extract_steps(text)

    if not steps and equation_match is not None:
        steps = [_placeholder_step(text, original, equation_match)]

    if result == RESULT_NOT_FOUND and steps and steps[-1].expression:
        logger.debug("[PARSER] Result taken from last step")
        result = steps[-1].expression

    return SolutionResult(original=original, steps=tuple(steps), result=result, graph=False)
