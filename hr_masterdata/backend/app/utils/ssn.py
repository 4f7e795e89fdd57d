"""
Swedish personal identity number (personnummer) normalisation.
"""
import re

_NON_DIGITS = re.compile(r"\D")

# Accepted input shapes before normalisation: 10 or 12 bare digits, or dashed forms.
SSN_INPUT_PATTERN = re.compile(r"^\d{10}$|^\d{12}$|^\d{6,8}-\d{4}$")


class InvalidSSNError(ValueError):
    pass


def normalize_ssn(value: str) -> str:
    """
    Return the canonical YYMMDD-XXXX form.

    Non-digits are stripped first. 10 digits are split 6/4; 12 digits have
    the century dropped. Anything else raises InvalidSSNError.
    """
    digits = _NON_DIGITS.sub("", value or "")
    if len(digits) == 10:
        return f"{digits[:6]}-{digits[6:]}"
    if len(digits) == 12:
        return f"{digits[2:8]}-{digits[8:]}"
    raise InvalidSSNError(f"Invalid SSN length: expected 10 or 12 digits, got {len(digits)}")
