from abc import ABC, abstractmethod
from typing import Iterable, List, Set, Union

from x12_delimiters import DelimiterSet, DEFAULT_DELIMITERS
from x12_models import Segment, ValidationResult

SegmentInput = Union[Segment, str]


class TransactionValidator(ABC):
    """
    Contract for transaction-specific validators (270, 271, 837, ...).

    Implementations accumulate every error they find instead of stopping at the
    first one, and report warnings alongside either outcome.
    """

    def __init__(self, delimiters: DelimiterSet = DEFAULT_DELIMITERS):
        self.delimiters = delimiters

    @abstractmethod
    def validate(self, segments: Iterable[SegmentInput]) -> ValidationResult:
        ...

    @abstractmethod
    def transaction_type(self) -> str:
        ...

    @abstractmethod
    def required_segments(self) -> Set[str]:
        ...

    @abstractmethod
    def optional_segments(self) -> Set[str]:
        ...

    def _coerce_segments(self, segments: Iterable[SegmentInput]) -> List[Segment]:
        """Accepts tokenized segments or raw segment strings split with this validator's delimiters."""
        coerced: List[Segment] = []
        for index, segment in enumerate(segments, start=1):
            if isinstance(segment, Segment):
                coerced.append(segment)
            else:
                coerced.append(Segment.from_raw(segment, self.delimiters, line_number=index))
        return coerced
