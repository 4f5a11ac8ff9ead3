import pytest
from validator_270 import Validator270, REQUIRED_SEGMENTS, OPTIONAL_SEGMENTS
from x12_delimiters import DelimiterSet
from x12_parser import X12Parser

pytestmark = pytest.mark.unit


@pytest.fixture
def validator() -> Validator270:
    return Validator270()


def _replace(segments, old: str, new: str):
    return [new if segment == old else segment for segment in segments]


# --- Contract ---

def test_validator_describes_270(validator: Validator270):
    assert validator.transaction_type() == "270"
    assert validator.required_segments() == set(REQUIRED_SEGMENTS)
    assert validator.optional_segments() == set(OPTIONAL_SEGMENTS)


# --- Valid Documents and Projection ---

def test_valid_270_is_projected(validator: Validator270, valid_270_segments):
    result = validator.validate(valid_270_segments)

    assert result.is_successful(), f"Unexpected errors: {result.errors}"
    assert result.transaction_type == "270"
    assert result.warnings == []

    data = result.data
    assert data["subscriber"] == {
        "entity_identifier_code": "IL",
        "entity_type_qualifier": "1",
        "last_name": "DOE",
        "first_name": "JOHN",
        "middle_name": "",
        "prefix": "",
        "suffix": "",
        "identification_code_qualifier": "MI",
        "identification_code": "123456789",
    }
    assert data["transaction"] == {
        "transaction_set_identifier_code": "270",
        "transaction_set_control_number": "0001",
    }
    assert data["functional_group"]["functional_identifier_code"] == "HS"
    assert data["functional_group"]["version_identifier_code"] == "005010X279A1"
    assert data["interchange"]["sender_id"] == "SENDER         "
    assert data["interchange"]["control_number"] == "000000001"
    assert data["interchange"]["component_element_separator"] == ">"
    assert data["inquiries"] == [{"service_type_code": "30"}]
    assert data["demographics"] == {}
    assert data["trace"] == {}


def test_parser_segments_validate_like_raw_strings(validator: Validator270, valid_270_x12_string, valid_270_segments):
    parsed = X12Parser().parse_content(valid_270_x12_string)
    from_parser = validator.validate(parsed.segments)
    from_strings = validator.validate(valid_270_segments)

    assert from_parser.is_successful()
    assert from_parser.data["subscriber"] == from_strings.data["subscriber"]


def test_optional_trn_dmg_and_eq_are_projected(validator: Validator270, valid_270_segments):
    segments = _replace(valid_270_segments, "EQ*30", "TRN*1*MEM001*9123456789")
    segments.insert(segments.index("SE*6*0001"), "DMG*D8*19800101*M")
    segments.insert(segments.index("SE*6*0001"), "EQ*30**FAM")
    segments = _replace(segments, "SE*6*0001", "SE*8*0001")

    result = validator.validate(segments)

    assert result.is_successful(), result.errors
    assert result.warnings == []
    assert result.data["trace"] == {
        "trace_type_code": "1",
        "reference_identification": "MEM001",
        "originating_company_identifier": "9123456789",
    }
    assert result.data["demographics"] == {
        "date_time_period_format_qualifier": "D8",
        "date_of_birth": "19800101",
        "gender": "M",
    }
    assert result.data["inquiries"] == [{"service_type_code": "30", "coverage_level_code": "FAM"}]


def test_document_without_subscriber_projects_empty_subscriber(validator: Validator270, valid_270_segments):
    segments = _replace(valid_270_segments, "NM1*IL*1*DOE*JOHN****MI*123456789", "NM1*PR*2*PAYER*****PI*12345")
    result = validator.validate(segments)

    assert result.is_successful()
    assert result.data["subscriber"] == {}


def test_custom_delimiters_for_raw_strings(valid_270_segments):
    delimiters = DelimiterSet(segment="'", element="+", sub_element=":")
    segments = [segment.replace("*", "+") for segment in valid_270_segments]

    result = Validator270(delimiters).validate(segments)
    assert result.is_successful(), result.errors
    assert result.data["subscriber"]["last_name"] == "DOE"


# --- Errors ---

def test_empty_segment_list_reports_all_missing(validator: Validator270):
    result = validator.validate([])

    assert not result.is_successful()
    assert result.data is None
    assert result.errors == ["Missing required segments: ISA, GS, ST, BHT, HL, NM1, SE, GE, IEA"]


def test_missing_isa_and_iea_reported_in_single_error(validator: Validator270, valid_270_segments):
    segments = valid_270_segments[1:-1]
    result = validator.validate(segments)

    assert not result.is_successful()
    assert result.errors[0] == "Missing required segments: ISA, IEA"
    assert "ISA segment must be the first segment" in result.errors
    assert "IEA segment must be the last segment" in result.errors


def test_st_before_gs_is_an_order_error(validator: Validator270, valid_270_segments):
    segments = list(valid_270_segments)
    segments[1], segments[2] = segments[2], segments[1]

    result = validator.validate(segments)
    assert result.errors == ["ST segment must come after GS segment"]


def test_isa_element_count_and_qualifiers(validator: Validator270, valid_270_segments):
    elements = valid_270_segments[0].split("*")
    elements[1] = "02"
    elements[3] = "05"
    short_isa = "*".join(elements[:-1])

    result = validator.validate([short_isa] + valid_270_segments[1:])

    assert result.errors == [
        "ISA segment must have exactly 16 elements",
        "ISA01: Invalid authorization information qualifier",
        "ISA03: Invalid security information qualifier",
    ]


def test_st_must_identify_270(validator: Validator270, valid_270_segments):
    result = validator.validate(_replace(valid_270_segments, "ST*270*0001", "ST*271"))

    assert "ST segment must have at least 2 elements" in result.errors
    assert "ST01: Transaction set identifier code must be 270" in result.errors


def test_nm1_checks(validator: Validator270, valid_270_segments):
    result = validator.validate(_replace(valid_270_segments, "NM1*IL*1*DOE*JOHN****MI*123456789", "NM1*ZZ*1"))

    assert result.errors == [
        "NM1 segment must have at least 3 elements",
        "NM101: Invalid entity identifier code 'ZZ'",
    ]


def test_all_errors_are_accumulated(validator: Validator270, valid_270_segments):
    segments = _replace(valid_270_segments, "ST*270*0001", "ST*271*0001")
    segments = _replace(segments, "NM1*IL*1*DOE*JOHN****MI*123456789", "NM1*XX*1*DOE")
    segments = segments[:-1]

    result = validator.validate(segments)

    assert result.errors == [
        "Missing required segments: IEA",
        "IEA segment must be the last segment",
        "ST01: Transaction set identifier code must be 270",
        "NM101: Invalid entity identifier code 'XX'",
    ]


# --- Warnings ---

def test_deprecated_segment_warns_without_failing(validator: Validator270, valid_270_segments):
    segments = list(valid_270_segments)
    segments.insert(segments.index("EQ*30"), "N3*123 MAIN ST")

    result = validator.validate(_replace(segments, "SE*6*0001", "SE*7*0001"))

    assert result.is_successful()
    assert result.warnings == ["Segment N3 is deprecated in 270 transactions"]


def test_warnings_are_kept_on_failure(validator: Validator270, valid_270_segments):
    segments = ["N4*CITY*ST*12345"] + valid_270_segments

    result = validator.validate(segments)

    assert not result.is_successful()
    assert "Segment N4 is deprecated in 270 transactions" in result.warnings


def test_segment_count_mismatch_warns(validator: Validator270, valid_270_segments):
    result = validator.validate(_replace(valid_270_segments, "SE*6*0001", "SE*8*0001"))

    assert result.is_successful()
    assert result.warnings == ["SE01 segment count '8' does not match the 6 segments from ST to SE"]


def test_multiple_subscribers_warn_and_first_wins(validator: Validator270, valid_270_segments):
    segments = list(valid_270_segments)
    segments.insert(segments.index("EQ*30"), "NM1*IL*1*ROE*JANE****MI*987654321")

    result = validator.validate(_replace(segments, "SE*6*0001", "SE*7*0001"))

    assert result.is_successful()
    assert result.data["subscriber"]["last_name"] == "DOE"
    assert result.warnings == ["Found 2 subscriber (NM1*IL) segments; only the first occurrence is used"]
