import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from xtalcif.cif.numeric import is_missing, parse_numeric, strip_quotes


@pytest.mark.parametrize(
    "token, expected",
    [
        ("1.234(5)", 1.234),
        ("10.000(2)", 10.0),
        ("-0.0123(12)", -0.0123),
        ("'90'", 90),
        ('"5.5"', 5.5),
        ("90", 90),
        ("1e3", 1000.0),
        ("-3.5E-2", -0.035),
        (".5", 0.5),
        ("+7.", 7.0),
        (" 2.5 ", 2.5),
        ("0.5x", 0.5),
        ("1.5e", 1.5),
        ("2.75A", 2.75),
        ("-4 apples", -4.0),
    ],
)
def test_parse_numeric(token, expected):
    assert parse_numeric(token) == pytest.approx(expected)


@pytest.mark.parametrize(
    "token",
    [".", "?", "", "   ", "'?'", None, "abc", "nan", "inf", "-inf", "1e999", "(5)", "C1"],
)
def test_parse_numeric_none(token):
    assert parse_numeric(token) is None


def test_parse_numeric_keeps_decimals_of_a_number_prefix():
    value = parse_numeric("5.43A")
    assert value == 5.43
    assert isinstance(value, float)
    assert parse_numeric("1e999x") is None


def test_strip_quotes():
    assert strip_quotes("'P 21/c'") == "P 21/c"
    assert strip_quotes('"x"') == "x"
    assert strip_quotes("'x\"") == "'x\""
    assert strip_quotes("'") == "'"
    assert strip_quotes("plain") == "plain"


def test_is_missing():
    assert is_missing(None)
    assert is_missing(" ? ")
    assert is_missing(".")
    assert not is_missing("0")


@given(token=st.one_of(st.none(), st.text()))
def test_parse_numeric_is_total(token):
    value = parse_numeric(token)
    assert value is None or isinstance(value, float)
    if isinstance(value, float):
        assert math.isfinite(value)


@given(
    x=st.floats(allow_nan=False, allow_infinity=False),
    su=st.integers(min_value=0, max_value=999),
)
def test_parse_numeric_drops_uncertainty(x, su):
    assert parse_numeric(repr(x)) == x
    assert parse_numeric(f"{x!r}({su})") == x


@given(n=st.integers(min_value=-(10**9), max_value=10**9))
def test_parse_numeric_integers(n):
    assert parse_numeric(str(n)) == n
    assert parse_numeric(f"'{n}'") == n
