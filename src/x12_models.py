from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

from x12_delimiters import DelimiterSet, DEFAULT_DELIMITERS

# Result and segment models shared by the parser, the validators and the service layer.


class Segment(BaseModel):
    """A single tokenized X12 segment. Element 0 is the segment identifier."""
    model_config = ConfigDict(frozen=True)

    segment_id: str
    elements: List[str]
    raw_segment: str
    line_number: int = 0

    @classmethod
    def from_raw(cls, raw_segment: str, delimiters: DelimiterSet = DEFAULT_DELIMITERS, line_number: int = 0) -> "Segment":
        parts = raw_segment.split(delimiters.element)
        return cls(segment_id=parts[0], elements=parts, raw_segment=raw_segment, line_number=line_number)

    def get_element(self, position: int) -> Optional[str]:
        """Returns the element at `position` (0 is the identifier), or None when absent."""
        if 0 <= position < len(self.elements):
            return self.elements[position]
        return None

    @property
    def element_count(self) -> int:
        """Number of data elements, not counting the identifier."""
        return len(self.elements) - 1


class ParseResult(BaseModel):
    """Outcome of tokenizing one interchange. A failure never carries segments."""
    model_config = ConfigDict(frozen=True)

    success: bool
    segments: List[Segment] = Field(default_factory=list)
    transaction_type: Optional[str] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    delimiters: DelimiterSet = DEFAULT_DELIMITERS

    @classmethod
    def ok(cls, segments: List[Segment], transaction_type: Optional[str], delimiters: DelimiterSet = DEFAULT_DELIMITERS) -> "ParseResult":
        return cls(success=True, segments=segments, transaction_type=transaction_type, delimiters=delimiters)

    @classmethod
    def failure(cls, errors: List[str], warnings: Optional[List[str]] = None, delimiters: DelimiterSet = DEFAULT_DELIMITERS) -> "ParseResult":
        return cls(success=False, errors=list(errors), warnings=list(warnings or []), delimiters=delimiters)

    def is_successful(self) -> bool:
        return self.success and not self.errors

    @property
    def segment_count(self) -> int:
        return len(self.segments)

    def get_segments_by_type(self, segment_id: str) -> List[Segment]:
        return [segment for segment in self.segments if segment.segment_id == segment_id]

    def raw_segments(self) -> List[str]:
        return [segment.raw_segment for segment in self.segments]


class ValidationResult(BaseModel):
    """Outcome of running a transaction validator over a segment list."""
    model_config = ConfigDict(frozen=True)

    success: bool
    data: Optional[Dict[str, Any]] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    transaction_type: Optional[str] = None

    @classmethod
    def ok(cls, data: Dict[str, Any], transaction_type: Optional[str] = None, warnings: Optional[List[str]] = None) -> "ValidationResult":
        return cls(success=True, data=data, warnings=list(warnings or []), transaction_type=transaction_type)

    @classmethod
    def failure(cls, errors: List[str], warnings: Optional[List[str]] = None, transaction_type: Optional[str] = None) -> "ValidationResult":
        return cls(success=False, errors=list(errors), warnings=list(warnings or []), transaction_type=transaction_type)

    def is_successful(self) -> bool:
        return self.success and not self.errors

    def has_errors(self) -> bool:
        return bool(self.errors)

    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def first_error(self) -> Optional[str]:
        return self.errors[0] if self.errors else None
