import pytest

from app.utils.ssn import InvalidSSNError, normalize_ssn


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("8503151234", "850315-1234"),
        ("198503151234", "850315-1234"),
        ("850315-1234", "850315-1234"),
        ("19850315-1234", "850315-1234"),
        (" 850315 1234 ", "850315-1234"),
    ],
)
def test_normalize_ssn(raw, expected):
    assert normalize_ssn(raw) == expected


def test_invalid_length_raises():
    with pytest.raises(InvalidSSNError) as exc:
        normalize_ssn("abc")
    assert str(exc.value) == "Invalid SSN length: expected 10 or 12 digits, got 0"


def test_eleven_digits_rejected():
    with pytest.raises(InvalidSSNError):
        normalize_ssn("85031512345")
