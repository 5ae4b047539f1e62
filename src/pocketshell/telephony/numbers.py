"""Phone number and service code helpers."""

import re

_NON_DIAL_CHARS = re.compile(r"[^+0-9]")
_USSD_CHARS = re.compile(r"^[0-9*#]+$")

MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15


def normalize_number(number: str) -> str:
    """Strip everything except digits and '+' for comparison and dialing."""
    return _NON_DIAL_CHARS.sub("", number)


def digits_only(number: str) -> str:
    return re.sub(r"\D", "", number)


def is_ussd_code(text: str) -> bool:
    """Check whether text looks like a service code such as *144# or #123#."""
    text = text.strip()
    return (
        len(text) >= 3
        and text[0] in "*#"
        and text.endswith("#")
        and bool(_USSD_CHARS.match(text))
    )


def is_valid_phone_number(text: str) -> bool:
    """Check for a dialable number of 7-15 digits.

    Separators (spaces, dashes, parentheses) and one leading '+' are allowed.
    Service codes are never valid phone numbers.
    """
    text = text.strip()
    if not text or is_ussd_code(text):
        return False
    if re.search(r"[^0-9+\s().-]", text):
        return False
    cleaned = normalize_number(text)
    if "+" in cleaned[1:]:
        return False
    return MIN_PHONE_DIGITS <= len(digits_only(cleaned)) <= MAX_PHONE_DIGITS


def numbers_match(a: str, b: str) -> bool:
    """Compare two numbers on their subscriber part (last nine digits).

    Lets "+254712345678" match "0712345678".
    """
    da, db = digits_only(a), digits_only(b)
    if not da or not db:
        return False
    if len(da) < 9 or len(db) < 9:
        return da == db
    return da[-9:] == db[-9:]
