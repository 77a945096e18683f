import pytest

from core.normalizer import descriptor_from_mapping, infer_type, normalize, parse_raw_pattern
from models.signature import Explicit, Literal, PatternDescriptor, PatternPriority, PatternType, Patterns


@pytest.mark.parametrize(
    "pattern, expected",
    [
        ("jquery.min.js", PatternType.REGEX),
        ("^Express$", PatternType.REGEX),
        ("wp-content", PatternType.EXACT),
        ("Wordpress", PatternType.EXACT),
        ("jquery123", PatternType.FUZZY),
        ("ABcdEF", PatternType.FUZZY),
    ],
)
def test_infer_type(pattern, expected):
    assert infer_type(pattern) == expected


def test_bare_string_uses_channel_defaults():
    [descriptor] = normalize("cdn.shopify.com", "scriptSrc")
    assert descriptor.pattern == "cdn.shopify.com"
    assert descriptor.confidence == 70
    assert descriptor.priority == PatternPriority.MEDIUM
    assert descriptor.type == PatternType.REGEX
    assert descriptor.location == "scriptSrc"


@pytest.mark.parametrize(
    "channel, confidence, priority",
    [
        ("headers", 80, PatternPriority.HIGH),
        ("cookies", 85, PatternPriority.HIGH),
        ("js", 60, PatternPriority.MEDIUM),
        ("dom", 65, PatternPriority.MEDIUM),
        ("html", 40, PatternPriority.MEDIUM),
        ("meta", 50, PatternPriority.LOW),
        ("unknown", 50, PatternPriority.MEDIUM),
    ],
)
def test_channel_default_tables(channel, confidence, priority):
    [descriptor] = normalize("marker", channel)
    assert descriptor.confidence == confidence
    assert descriptor.priority == priority


def test_lists_are_flattened():
    descriptors = normalize(["a", ["b", "c"]], "js")
    assert [d.pattern for d in descriptors] == ["a", "b", "c"]


def test_explicit_descriptor_passes_through_unchanged():
    descriptor = PatternDescriptor(
        pattern="foo", priority=PatternPriority.LOW, type=PatternType.ENCODED, confidence=33, location="custom"
    )
    assert normalize(Explicit(descriptor), "js") == [descriptor]
    assert normalize(descriptor, "html") == [descriptor]


def test_mapping_fills_gaps_from_channel_defaults():
    [descriptor] = normalize({"pattern": "foo", "priority": "high", "confidence": 90}, "js")
    assert descriptor.priority == PatternPriority.HIGH
    assert descriptor.confidence == 90
    assert descriptor.type == PatternType.EXACT
    assert descriptor.location == "js"


def test_mapping_default_pattern():
    descriptor = descriptor_from_mapping({"type": "encoded"}, "js", default_pattern="__NEXT_DATA__")
    assert descriptor.pattern == "__NEXT_DATA__"
    assert descriptor.type == PatternType.ENCODED


@pytest.mark.parametrize(
    "data",
    [
        {"priority": "HIGH"},
        {"pattern": ""},
        {"pattern": "foo", "priority": "urgent"},
        {"pattern": "foo", "type": "glob"},
    ],
)
def test_invalid_mapping_raises(data):
    with pytest.raises(ValueError):
        descriptor_from_mapping(data, "js")


def test_parse_raw_pattern_sum_type():
    assert parse_raw_pattern("foo", "js") == Literal("foo")
    assert parse_raw_pattern(["foo", "bar"], "js") == Patterns((Literal("foo"), Literal("bar")))
    assert isinstance(parse_raw_pattern({"pattern": "foo"}, "js"), Explicit)
    with pytest.raises(ValueError):
        parse_raw_pattern(42, "js")


def test_none_normalizes_to_nothing():
    assert normalize(None, "js") == []
