import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from x12_delimiters import DelimiterSet, DEFAULT_DELIMITERS, resolve_delimiters
from x12_exceptions import InvalidSegmentError, UnsupportedTransactionTypeError, X12Error
from x12_models import ParseResult, Segment
from x12_sanitizer import InputSanitizer

logger = logging.getLogger(__name__)

SUPPORTED_TRANSACTIONS = ("270", "271", "837", "835")


class X12Parser:
    """
    Splits one X12 interchange into segments and detects its transaction type.

    The parser never mutates its own delimiters: each call resolves the set it
    needs and reports it back on the ParseResult, so one instance can be shared.
    """

    def __init__(
        self,
        delimiters: DelimiterSet = DEFAULT_DELIMITERS,
        transaction_delimiters: Optional[Mapping[str, Mapping[str, str]]] = None,
        sanitizer: Optional[InputSanitizer] = None,
    ):
        self.delimiters = delimiters
        self.transaction_delimiters: Dict[str, Mapping[str, str]] = dict(transaction_delimiters or {})
        self.sanitizer = sanitizer or InputSanitizer()

    def with_delimiters(self, delimiters: DelimiterSet) -> "X12Parser":
        return X12Parser(delimiters, self.transaction_delimiters, self.sanitizer)

    def delimiters_for_transaction(self, transaction_type: Optional[str]) -> DelimiterSet:
        return resolve_delimiters(self.delimiters, self.transaction_delimiters, transaction_type, only_when_default=True)

    def supported_transaction_types(self) -> List[str]:
        return list(SUPPORTED_TRANSACTIONS)

    def parse_file(self, file_path: str) -> ParseResult:
        path = Path(file_path)
        if not path.exists():
            return ParseResult.failure([f"File not found: {file_path}"])
        try:
            content = path.read_text()
        except (OSError, UnicodeDecodeError) as e:
            return ParseResult.failure([f"Error reading file: {e}"])
        return self.parse_content(content)

    def parse_content(
        self,
        content: str,
        expected_type: Optional[str] = None,
        delimiters: Optional[DelimiterSet] = None,
    ) -> ParseResult:
        content = self.sanitizer.sanitize_content(content)

        if not self.sanitizer.is_content_safe(content):
            return ParseResult.failure(["Content contains dangerous characters"])
        validation_errors = self.sanitizer.get_validation_errors(content)
        if validation_errors:
            logger.debug(f"Content rejected by sanitizer: {validation_errors}")
            return ParseResult.failure(validation_errors)

        # Delimiter selection has to happen before the content is split.
        active = resolve_delimiters(
            self.delimiters, self.transaction_delimiters, expected_type, explicit=delimiters, only_when_default=True
        )

        try:
            segments = self._segmentize(content, active)
            detected_type = self._detect_transaction_type(segments)
        except X12Error as e:
            logger.debug(f"Tokenization failed: {e}")
            return ParseResult.failure([str(e)], delimiters=active)

        if expected_type and expected_type != detected_type:
            return ParseResult.failure(
                [f"Transaction type mismatch: expected '{expected_type}', detected '{detected_type}'"],
                delimiters=active,
            )

        logger.debug(f"Parsed {len(segments)} segments, transaction type '{detected_type}'.")
        return ParseResult.ok(segments, detected_type, delimiters=active)

    def _segmentize(self, content: str, delimiters: DelimiterSet) -> List[Segment]:
        segments: List[Segment] = []
        for raw in content.strip().split(delimiters.segment):
            raw = raw.strip()
            if not raw:
                continue
            clean = self.sanitizer.sanitize_segment(raw, delimiters)
            segments.append(Segment.from_raw(clean, delimiters, line_number=len(segments) + 1))
        return segments

    def _detect_transaction_type(self, segments: List[Segment]) -> str:
        for segment in segments:
            if segment.segment_id != "ST":
                continue
            transaction_type = segment.get_element(1)
            if not transaction_type:
                raise InvalidSegmentError(segment.raw_segment, "Missing transaction type in ST segment")
            if transaction_type not in SUPPORTED_TRANSACTIONS:
                raise UnsupportedTransactionTypeError(transaction_type)
            return transaction_type
        raise InvalidSegmentError("", "No ST segment found to determine transaction type")
