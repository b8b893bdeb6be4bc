# tests/test_phone_numbers.py
from softphone.client.phone_numbers import full_number, match_country_code, split_phone_number


def test_split_known_country_code():
    assert split_phone_number("+4512345678") == ("+45", "12345678")
    assert split_phone_number("+46 70-123 45 67") == ("+46", "701234567")


def test_split_longest_prefix_wins():
    assert match_country_code("+4412345") == "+44"
    assert match_country_code("+14155550100") == "+1"


def test_split_without_plus_uses_default():
    assert split_phone_number("12 34 56 78") == ("+45", "12345678")
    assert split_phone_number("12345678", default_country_code="+47") == ("+47", "12345678")


def test_split_unknown_country_code_keeps_digits():
    # Not in the table: the digits are kept and the default code is used
    assert split_phone_number("+3312345678") == ("+45", "3312345678")


def test_full_number():
    assert full_number("+45", "12 34 56 78") == "+4512345678"
