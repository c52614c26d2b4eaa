"""Tests for structured extraction of recognizer replies."""
from __future__ import annotations

import pytest

from services.solver.models import SolutionStep
from services.solver.response_parser import (
    EQUATION_RULES,
    GENERIC_STEP_LABEL,
    NO_EQUATION_ERROR,
    NO_EQUATION_ORIGINAL,
    NO_EQUATION_RESULT,
    RESULT_NOT_FOUND,
    RESULT_RULES,
    SOLUTION_PROCESS_LABEL,
    delimited_expressions,
    extract_result,
    extract_solution,
    first_match,
    split_steps,
)

TEMPLATE_REPLY = (
    "**Equation:** $2x+3=7$\n"
    "**Steps to Solve:**\n"
    "1. **Subtract 3:**\n$2x=4$\n"
    "2. **Divide by 2:**\n$x=2$\n"
    "**Final Answer:**\n$x=2$"
)


# ----------------------------------------------------------
# LITERAL SCENARIOS
# ----------------------------------------------------------

def test_template_reply_fully_extracted() -> None:
    solution = extract_solution(TEMPLATE_REPLY)

    assert solution.original == "2x+3=7"
    assert solution.steps == (
        SolutionStep("Subtract 3:", "2x=4"),
        SolutionStep("Divide by 2:", "x=2"),
    )
    assert solution.result == "x=2"
    assert solution.error is None
    assert solution.graph is False


def test_no_equation_reply() -> None:
    solution = extract_solution("No equation detected in the image.")

    assert solution.error == NO_EQUATION_ERROR
    assert solution.steps == ()
    assert solution.result == NO_EQUATION_RESULT
    assert solution.original == NO_EQUATION_ORIGINAL


def test_single_expression_without_labels() -> None:
    solution = extract_solution("$x^2$")

    assert solution.original == "x^2"
    assert solution.steps == (SolutionStep(GENERIC_STEP_LABEL, "x^2"),)
    assert solution.result == "x^2"
    assert solution.error is None


def test_empty_reply() -> None:
    solution = extract_solution("")

    assert solution.original == ""
    assert solution.steps == ()
    assert solution.result == RESULT_NOT_FOUND
    assert solution.error is None


# ----------------------------------------------------------
# PRIORITIES
# ----------------------------------------------------------

@pytest.mark.parametrize(
    "signal",
    ["No equation detected", "the IMAGE IS BLANK", "there is no equation here", "I cannot identify it"],
)
def test_negative_signal_beats_structure(signal: str) -> None:
    solution = extract_solution(TEMPLATE_REPLY + "\n" + signal)

    assert solution.error == NO_EQUATION_ERROR
    assert solution.steps == ()
    assert solution.result == NO_EQUATION_RESULT


def test_bold_equation_label_wins_over_plain() -> None:
    solution = extract_solution("**Equation:** $x+1$ Equation: $y+2$")
    assert solution.original == "x+1"


def test_plain_equation_label_wins_over_first_expression() -> None:
    solution = extract_solution("Try $a$ first. Equation: $y+2$")
    assert solution.original == "y+2"


@pytest.mark.parametrize(
    "text,tier,value",
    [
        ("**Equation:** $x+1$", "bold_label", "x+1"),
        ("**Equation**: $x+1$", "bold_label", "x+1"),
        ("Equation: $ y - 2 $", "plain_label", "y - 2"),
        ("*Equation:* $z$", "italic_label", "z"),
        ("we need $w=1$ here", "first_delimited", "w=1"),
    ],
)
def test_equation_tiers(text: str, tier: str, value: str) -> None:
    name, match = first_match(EQUATION_RULES, text)
    assert name == tier
    assert match.group(1).strip() == value


@pytest.mark.parametrize(
    "text,tier,value",
    [
        ("**Final Answer:** $x=2$", "bold_final_answer", "x=2"),
        ("Final Answer: $x=3$", "plain_final_answer", "x=3"),
        ("*Final Answer:* $x=4$", "italic_final_answer", "x=4"),
        ("**Result:** $5$", "result_label", "5"),
        ("Answer: $7$", "answer_label", "7"),
    ],
)
def test_result_tiers(text: str, tier: str, value: str) -> None:
    name, match = first_match(RESULT_RULES, text)
    assert name == tier
    assert match.group(1).strip() == value


def test_result_falls_back_to_last_expression() -> None:
    assert extract_result("first $a$ then $b$") == "b"


def test_result_sentinel_without_expressions() -> None:
    assert extract_result("nothing to see") == RESULT_NOT_FOUND


def test_blank_delimited_span_is_skipped() -> None:
    assert delimited_expressions("$ $ and $x$") == ["x"]
    assert first_match(EQUATION_RULES, "$  $") is None


# ----------------------------------------------------------
# STEPS
# ----------------------------------------------------------

def test_step_order_preserved() -> None:
    reply = (
        "**Equation:** $3(x+1)=9$ **Steps to Solve:** "
        "1. **Expand:** $3x+3=9$ 2. **Collect:** $3x=6$ 3. **Solve:** $x=2$ "
        "**Final Answer:** $x=2$"
    )
    solution = extract_solution(reply)

    assert [s.explanation for s in solution.steps] == ["Expand:", "Collect:", "Solve:"]
    assert [s.expression for s in solution.steps] == ["3x+3=9", "3x=6", "x=2"]


def test_last_expression_of_a_step_is_kept() -> None:
    steps = split_steps(" 1. **Simplify:** $2x+2x$ becomes $4x$ ")
    assert steps == [SolutionStep("Simplify:", "4x")]


def test_plain_text_step_content() -> None:
    reply = "**Steps to Solve:** 1. **Think:** consider *both* sides 2. **Solve:** $x=3$"
    solution = extract_solution(reply)

    assert solution.steps == (
        SolutionStep("Think:", "consider both sides"),
        SolutionStep("Solve:", "x=3"),
    )


def test_numbered_plain_markers() -> None:
    reply = "Steps to Solve: 1. Subtract 3: $2x=4$ 2. Divide by 2: $x=2$"
    solution = extract_solution(reply)

    assert solution.steps == (
        SolutionStep("Subtract 3", "2x=4"),
        SolutionStep("Divide by 2", "x=2"),
    )


def test_bold_step_markers_in_solution_section() -> None:
    reply = "**Solution:** **Step 1:** $x+1=3$ **Step 2:** $x=2$"
    solution = extract_solution(reply)

    assert solution.original == "x+1=3"
    assert solution.steps == (
        SolutionStep("Step 1:", "x+1=3"),
        SolutionStep("Step 2:", "x=2"),
    )
    assert solution.result == "x=2"


def test_italic_step_markers() -> None:
    reply = "**Steps to Solve:** *Step 1*: $a=1$ *Step 2*: $a=2$"
    solution = extract_solution(reply)

    assert solution.steps == (SolutionStep("Step 1", "a=1"), SolutionStep("Step 2", "a=2"))


def test_plain_step_markers() -> None:
    reply = "Solution: Step 1: move terms Step 2: $x=4$"
    solution = extract_solution(reply)

    assert solution.steps == (SolutionStep("Step 1", "move terms"), SolutionStep("Step 2", "x=4"))


def test_generic_emphasis_labels() -> None:
    reply = "**Solution:** **Isolate the variable:** $x=5$ **Check**: $5=5$"
    solution = extract_solution(reply)

    assert solution.steps == (
        SolutionStep("Isolate the variable:", "x=5"),
        SolutionStep("Check", "5=5"),
    )


def test_steps_section_stops_at_final_answer() -> None:
    reply = "**Steps to Solve:** 1. **Add:** $y=1$ **Final Answer:** 2. **Ignored:** $y=9$"
    solution = extract_solution(reply)

    assert solution.steps == (SolutionStep("Add:", "y=1"),)


def test_final_answer_in_prose_does_not_end_section() -> None:
    reply = (
        "**Steps to Solve:** 1. **Compute:** $x=2$ which is the final answer we check "
        "2. **Check:** $2=2$ **Final Answer:** $x=2$"
    )
    solution = extract_solution(reply)

    assert [s.explanation for s in solution.steps] == ["Compute:", "Check:"]
    assert solution.steps[-1].expression == "2=2"
    assert solution.result == "x=2"


def test_inner_expressions_become_generic_steps() -> None:
    reply = "We start with $x+1=3$, subtract to get $x=3-1$, then $x=2$ remains, so $x=2$."
    solution = extract_solution(reply)

    assert solution.original == "x+1=3"
    assert solution.steps == (SolutionStep("Step 1", "x=3-1"), SolutionStep("Step 2", "x=2"))
    assert solution.result == "x=2"


def test_leftover_text_becomes_solution_process_step() -> None:
    solution = extract_solution("**Equation:** $x^2=4$ both roots are *real*")

    assert solution.original == "x^2=4"
    assert solution.steps == (SolutionStep(SOLUTION_PROCESS_LABEL, "both roots are real"),)
    assert solution.result == "x^2=4"


def test_display_math_block_gives_generic_step() -> None:
    solution = extract_solution("$$x^2$$")

    assert solution.original == "x^2"
    assert solution.steps == (SolutionStep(GENERIC_STEP_LABEL, "x^2"),)


def test_result_taken_from_last_step_when_unlabelled() -> None:
    reply = "Steps to Solve: Step 1: add both sides Step 2: divide by two"
    solution = extract_solution(reply)

    assert solution.original == reply
    assert solution.steps[-1] == SolutionStep("Step 2", "divide by two")
    assert solution.result == "divide by two"


def test_plain_prose_keeps_whole_text() -> None:
    solution = extract_solution("just some words")

    assert solution.original == "just some words"
    assert solution.steps == ()
    assert solution.result == RESULT_NOT_FOUND


# ----------------------------------------------------------
# TOTALITY
# ----------------------------------------------------------

@pytest.mark.parametrize(
    "text",
    ["", "$", "$x+1", "no delimiters at all", "**Equation:** $", "$$", "1. **A:**", "****:::$$$$", "* ** *"],
)
def test_extract_never_raises(text: str) -> None:
    solution = extract_solution(text)
    assert isinstance(solution.result, str)
    assert all(step.explanation for step in solution.steps)


def test_to_dict_omits_unset_error() -> None:
    data = extract_solution(TEMPLATE_REPLY).to_dict()

    assert "error" not in data
    assert data["steps"][0] == {"explanation": "Subtract 3:", "expression": "2x=4"}
    assert data["graph"] is False


def test_to_dict_keeps_error() -> None:
    data = extract_solution("image is blank").to_dict()
    assert data["error"] == NO_EQUATION_ERROR
    assert data["steps"] == []
