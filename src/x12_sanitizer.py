import logging
import re
from typing import Any, Dict, List

from x12_delimiters import DelimiterSet, DEFAULT_DELIMITERS
from x12_exceptions import InvalidElementError, InvalidSegmentError

logger = logging.getLogger(__name__)

MAX_SEGMENT_LENGTH = 105
MAX_ELEMENT_LENGTH = 80
MAX_CONTENT_LENGTH = 10000

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_WHITESPACE_RUN = re.compile(r"\s+")
_SEGMENT_IDENTIFIER = re.compile(r"^[A-Z0-9]{2,3}")
_IDENTIFIER_ONLY = re.compile(r"[A-Z0-9]{2,3}")
_BASE_ALLOWED_CHARS = "A-Za-z0-9\\s" + re.escape("-./*+=&$%#@!?()[]{}|:;<>\"'")


class InputSanitizer:
    """
    Cleans and checks untrusted X12 input before it is tokenized.

    Everything downstream of this class may assume ASCII-safe, length-bounded
    segments whose characters never collide with the active delimiters.
    """

    def sanitize_content(self, content: str) -> str:
        content = self._remove_control_characters(content)
        content = content.replace("\r\n", "\n").replace("\r", "\n")
        content = self._normalize_whitespace(content)
        return content.strip()

    def is_content_safe(self, content: str) -> bool:
        if "\0" in content:
            return False
        return _CONTROL_CHARS.search(content) is None

    def get_validation_errors(self, content: str) -> List[str]:
        errors: List[str] = []
        if not content:
            errors.append("Content cannot be empty")
        if not self.is_content_safe(content):
            errors.append("Content contains dangerous characters")
        if len(content) > MAX_CONTENT_LENGTH:
            errors.append("Content is too large (max 10KB)")
        return errors

    def sanitize_segment(self, segment: str, delimiters: DelimiterSet = DEFAULT_DELIMITERS) -> str:
        original = segment
        segment = self._normalize_whitespace(self._remove_control_characters(segment)).strip()

        if len(segment) > MAX_SEGMENT_LENGTH:
            raise InvalidSegmentError(
                original,
                f"Segment length exceeds maximum allowed length of {MAX_SEGMENT_LENGTH} characters",
            )
        if not segment:
            raise InvalidSegmentError(original, "Segment cannot be empty")
        if not _SEGMENT_IDENTIFIER.match(segment):
            raise InvalidSegmentError(original, "Segment must start with 2-3 alphanumeric identifier")
        if not self._allowed_pattern(delimiters).fullmatch(segment):
            logger.debug(f"Rejected segment with characters outside the allowlist: {segment!r}")
            raise InvalidSegmentError(original, "Segment contains invalid characters")
        identifier = segment.split(delimiters.element, 1)[0]
        if not _IDENTIFIER_ONLY.fullmatch(identifier):
            raise InvalidSegmentError(original, "Segment identifier must be followed by the element delimiter")
        return segment

    def sanitize_element(self, value: str) -> str:
        value = self._normalize_whitespace(self._remove_control_characters(value)).strip()
        if len(value) > MAX_ELEMENT_LENGTH:
            raise InvalidElementError(
                value,
                f"Element length exceeds maximum allowed length of {MAX_ELEMENT_LENGTH} characters",
            )
        return value

    def sanitize_json_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively sanitizes every string found in a JSON-origin mapping."""
        return {key: self._sanitize_value(value) for key, value in data.items()}

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.sanitize_element(value)
        if isinstance(value, dict):
            return self.sanitize_json_data(value)
        if isinstance(value, list):
            return [self._sanitize_value(item) for item in value]
        return value

    @staticmethod
    def _remove_control_characters(value: str) -> str:
        return _CONTROL_CHARS.sub("", value.replace("\0", ""))

    @staticmethod
    def _normalize_whitespace(value: str) -> str:
        return _WHITESPACE_RUN.sub(" ", value)

    @staticmethod
    def _allowed_pattern(delimiters: DelimiterSet) -> "re.Pattern[str]":
        extra = "".join(re.escape(char) for char in sorted(delimiters.characters()))
        return re.compile(f"[{_BASE_ALLOWED_CHARS}{extra}]*")
