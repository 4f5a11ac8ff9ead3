import pytest
from x12_models import ParseResult, Segment, ValidationResult
from x12_delimiters import DelimiterSet

pytestmark = pytest.mark.unit


def test_segment_from_raw():
    segment = Segment.from_raw("EQ*30**FAM", line_number=7)

    assert segment.segment_id == "EQ"
    assert segment.elements == ["EQ", "30", "", "FAM"]
    assert segment.raw_segment == "EQ*30**FAM"
    assert segment.line_number == 7
    assert segment.element_count == 3


def test_segment_from_raw_with_custom_delimiters():
    segment = Segment.from_raw("EQ+30", DelimiterSet(segment="'", element="+", sub_element=":"))
    assert segment.get_element(1) == "30"


def test_segment_get_element_out_of_range_returns_none():
    segment = Segment.from_raw("SE*6*0001")

    assert segment.get_element(0) == "SE"
    assert segment.get_element(3) is None
    assert segment.get_element(-1) is None


def test_parse_result_ok():
    segments = [Segment.from_raw("ST*270*0001"), Segment.from_raw("SE*2*0001")]
    result = ParseResult.ok(segments, "270")

    assert result.is_successful()
    assert result.segment_count == 2
    assert result.get_segments_by_type("SE") == [segments[1]]
    assert result.raw_segments() == ["ST*270*0001", "SE*2*0001"]


def test_parse_result_failure_carries_no_segments():
    result = ParseResult.failure(["boom"], warnings=["careful"])

    assert not result.is_successful()
    assert result.segments == []
    assert result.transaction_type is None
    assert result.errors == ["boom"]
    assert result.warnings == ["careful"]


def test_validation_result_helpers():
    ok = ValidationResult.ok({"transaction": {}}, "270", warnings=["w"])
    assert ok.is_successful()
    assert not ok.has_errors()
    assert ok.has_warnings()
    assert ok.first_error() is None

    failed = ValidationResult.failure(["first", "second"], transaction_type="270")
    assert not failed.is_successful()
    assert failed.has_errors()
    assert failed.data is None
    assert failed.first_error() == "first"
