# softphone/client/phone_numbers.py
import re
from typing import List, Tuple

DEFAULT_COUNTRY_CODE = "+45"

# (code, label) as offered in the dial pad
COUNTRY_CODES: List[Tuple[str, str]] = [
    ("+45", "Danmark (+45)"),
    ("+46", "Sverige (+46)"),
    ("+47", "Norge (+47)"),
    ("+49", "Tyskland (+49)"),
    ("+44", "UK (+44)"),
    ("+1", "USA/Canada (+1)"),
]

_NON_DIGITS = re.compile(r"\D")


def match_country_code(number: str) -> str | None:
    """
    Longest-prefix match of `number` against COUNTRY_CODES.

    Codes that share a prefix across countries are not told apart; "+1"
    covers the whole North American plan.
    """
    for code, _label in sorted(COUNTRY_CODES, key=lambda item: len(item[0]), reverse=True):
        if number.startswith(code):
            return code
    return None


def split_phone_number(raw: str, default_country_code: str = DEFAULT_COUNTRY_CODE) -> Tuple[str, str]:
    """
    Split a stored lead number into (country_code, national digits).

    "+45 12 34 56 78" -> ("+45", "12345678")
    "12-34-56-78"     -> (default_country_code, "12345678")
    """
    number = (raw or "").strip()
    country_code = default_country_code

    if number.startswith("+"):
        matched = match_country_code(number)
        if matched:
            country_code = matched
            number = number[len(matched):]

    return country_code, _NON_DIGITS.sub("", number)


def full_number(country_code: str, phone_number: str) -> str:
    return f"{country_code}{_NON_DIGITS.sub('', phone_number or '')}"
