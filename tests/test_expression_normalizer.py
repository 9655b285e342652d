import pytest

from datadog_ops.datetime_parser import UNIT_ALIASES, UNIT_SECONDS, normalize_expression


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1d ago", "1 day ago"),
        ("3h ago", "3 hours ago"),
        ("10 min ago", "10 minutes ago"),
        ("1 sec ago", "1 second ago"),
        ("2 yrs ago", "2 years ago"),
        ("in 2w", "in 2 weeks"),
        ("IN 1 Hr", "in 1 hour"),
        ("in 6mo", "in 6 months"),
        ("minus 5 mins", "5 minutes ago"),
        ("minus 1 day", "1 day ago"),
        ("plus 1 yr", "in 1 year"),
        ("plus 2 hours", "in 2 hours"),
        ("  3d ago  ", "3 days ago"),
    ],
)
def test_rewrites_abbreviations(text, expected):
    assert normalize_expression(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "last Friday",
        "next Monday",
        "5q ago",
        "in 2 weeks ago",
        "yesterday at noon",
        "2024-11-27T10:30:00Z",
    ],
)
def test_unmatched_input_returned_verbatim(text):
    assert normalize_expression(text) == text


def test_zero_magnitude_is_plural():
    assert normalize_expression("0h ago") == "0 hours ago"


def test_every_alias_maps_to_a_known_unit():
    assert set(UNIT_ALIASES.values()) == set(UNIT_SECONDS)
