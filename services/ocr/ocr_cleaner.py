import re

# Letters are left alone: an OCR'd "x" is far more often a variable than a
# multiplication sign, so only the explicit glyphs are mapped.


def clean_math_expression(text: str) -> str:
    if not text:
        return ""

    # Newlines -> spaces
    text = text.replace("\n", " ")

    # Operator glyphs
    text = text.replace("×", "*")
    text = text.replace("÷", "/")

    # Fix √9 → sqrt(9)
    text = re.sub(r"√(\d+)", r"sqrt(\1)", text)

    # Fix ∫ → \int
    text = text.replace("∫", r"\int")

    # Fix x^2 → x^{2}
    text = re.sub(r"\^(\d+)", r"^{\1}", text)

    # Remove extra spaces
    text = re.sub(r"\s+", " ", text)

    return text.strip()
