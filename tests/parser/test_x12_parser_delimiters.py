import pytest
from x12_parser import X12Parser
from x12_delimiters import DelimiterSet, DEFAULT_DELIMITERS

pytestmark = pytest.mark.unit

EDIFACT_STYLE = DelimiterSet(segment="'", element="+", sub_element=":")


def _convert(content: str, delimiters: DelimiterSet) -> str:
    """Rewrites default-delimited content with another delimiter set."""
    return (
        content.replace("*>~", f"*{delimiters.sub_element}~")
        .replace("*", delimiters.element)
        .replace("~", delimiters.segment)
    )


def test_explicit_delimiters_are_used_for_one_call(valid_270_x12_string: str):
    parser = X12Parser()
    content = _convert(valid_270_x12_string, EDIFACT_STYLE)

    result = parser.parse_content(content, delimiters=EDIFACT_STYLE)

    assert result.is_successful(), result.errors
    assert result.delimiters == EDIFACT_STYLE
    assert result.get_segments_by_type("NM1")[0].get_element(3) == "DOE"
    # The parser itself keeps its defaults.
    assert parser.delimiters == DEFAULT_DELIMITERS


def test_parser_constructed_with_custom_delimiters(valid_270_x12_string: str):
    parser = X12Parser(EDIFACT_STYLE)
    result = parser.parse_content(_convert(valid_270_x12_string, EDIFACT_STYLE))

    assert result.is_successful(), result.errors
    assert result.get_segments_by_type("ISA")[0].get_element(16) == ":"


def test_with_delimiters_returns_new_parser():
    parser = X12Parser()
    custom = parser.with_delimiters(EDIFACT_STYLE)

    assert custom is not parser
    assert custom.delimiters == EDIFACT_STYLE
    assert parser.delimiters == DEFAULT_DELIMITERS


def test_transaction_override_applies_for_expected_type(valid_270_x12_string: str):
    parser = X12Parser(transaction_delimiters={"270": {"element": "|"}})
    content = valid_270_x12_string.replace("*", "|")

    result = parser.parse_content(content, expected_type="270")

    assert result.is_successful(), result.errors
    assert result.delimiters == DelimiterSet(segment="~", element="|", sub_element=">")


def test_transaction_override_ignored_without_expected_type(valid_270_x12_string: str):
    parser = X12Parser(transaction_delimiters={"270": {"element": "|"}})
    result = parser.parse_content(valid_270_x12_string)

    assert result.is_successful()
    assert result.delimiters == DEFAULT_DELIMITERS


def test_transaction_override_does_not_replace_custom_delimiters(valid_270_x12_string: str):
    parser = X12Parser(EDIFACT_STYLE, transaction_delimiters={"270": {"element": "|"}})
    result = parser.parse_content(_convert(valid_270_x12_string, EDIFACT_STYLE), expected_type="270")

    assert result.is_successful(), result.errors
    assert result.delimiters == EDIFACT_STYLE


def test_delimiters_for_transaction():
    parser = X12Parser(transaction_delimiters={"270": {"segment": "'"}})

    assert parser.delimiters_for_transaction("270").segment == "'"
    assert parser.delimiters_for_transaction("271") == DEFAULT_DELIMITERS
    assert parser.delimiters_for_transaction(None) == DEFAULT_DELIMITERS
