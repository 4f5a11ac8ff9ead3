import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from eligibility_270 import Eligibility270DTO
from x12_delimiters import DelimiterSet, DEFAULT_DELIMITERS, resolve_delimiters
from x12_exceptions import InvalidEligibilityDataError, UnsupportedTransactionTypeError

logger = logging.getLogger(__name__)


def _value(data: Mapping[str, Any], key: str, default: str) -> str:
    value = data.get(key)
    if value is None or value == "":
        return default
    return str(value)


class X12Builder:
    """
    Serializes domain records back into X12 text.

    Like the parser, the builder keeps an immutable default DelimiterSet and
    resolves the set for each call, so a single instance can be shared.
    """

    def __init__(
        self,
        delimiters: DelimiterSet = DEFAULT_DELIMITERS,
        transaction_delimiters: Optional[Mapping[str, Mapping[str, str]]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.delimiters = delimiters
        self.transaction_delimiters: Dict[str, Mapping[str, str]] = dict(transaction_delimiters or {})
        self.clock = clock

    def with_delimiters(self, delimiters: DelimiterSet) -> "X12Builder":
        return X12Builder(delimiters, self.transaction_delimiters, self.clock)

    def delimiters_for_transaction(self, transaction_type: Optional[str]) -> DelimiterSet:
        return resolve_delimiters(self.delimiters, self.transaction_delimiters, transaction_type)

    def build_from_array(self, data: Mapping[str, Any], transaction_type: str = "270") -> str:
        if transaction_type == "270":
            return self.build_from_270_dto(Eligibility270DTO.from_array(data))
        raise UnsupportedTransactionTypeError(transaction_type)

    def build_from_270_dto(
        self,
        dto: Eligibility270DTO,
        transaction_type: Optional[str] = None,
        delimiters: Optional[DelimiterSet] = None,
    ) -> str:
        """
        Builds a complete ISA..IEA interchange for a 270 inquiry.

        Segments are joined with the element delimiter internally and with the
        segment delimiter between segments; the result ends with a segment delimiter.
        """
        active = resolve_delimiters(self.delimiters, self.transaction_delimiters, transaction_type, explicit=delimiters)

        # The DTO may have been created with model_construct(), which skips validation.
        dto.validate_fields()

        now = self.clock()
        transaction_segments: List[List[str]] = [
            self._st(dto),
            self._bht(dto, now),
            self._hl(),
            self._nm1(dto),
        ]
        if dto.subscriber_member_id:
            transaction_segments.append(self._trn(dto))
        if dto.has_demographics():
            transaction_segments.append(self._dmg(dto))
        for inquiry in dto.inquiries:
            transaction_segments.append(self._eq(inquiry))
        # SE01 counts every segment from ST through SE inclusive.
        transaction_segments.append(self._se(dto, len(transaction_segments) + 1))

        segments = [self._isa(dto, now, active), self._gs(dto, now)]
        segments.extend(transaction_segments)
        segments.append(self._ge(dto))
        segments.append(self._iea(dto))
        for elements in segments:
            self._reject_delimiters(elements, active)

        content = active.segment.join(self._join(elements, active) for elements in segments) + active.segment
        logger.debug(f"Built 270 interchange with {len(segments)} segments ({len(transaction_segments)} in ST..SE).")
        return content

    @staticmethod
    def _reject_delimiters(elements: Sequence[str], delimiters: DelimiterSet) -> None:
        reserved = delimiters.characters()
        identifier = elements[0]
        # ISA16 carries the sub-element separator itself.
        values = elements[1:-1] if identifier == "ISA" else elements[1:]
        for position, value in enumerate(values, start=1):
            found = reserved.intersection(value)
            if found:
                raise InvalidEligibilityDataError(
                    f"{identifier}{position:02d} value '{value}' contains delimiter characters: {''.join(sorted(found))}"
                )

    @staticmethod
    def _join(elements: Sequence[str], delimiters: DelimiterSet) -> str:
        elements = list(elements)
        while len(elements) > 1 and elements[-1] == "":
            elements.pop()
        return delimiters.element.join(elements)

    # --- Envelope ---
    def _isa(self, dto: Eligibility270DTO, now: datetime, delimiters: DelimiterSet) -> List[str]:
        interchange = dto.interchange_data
        return [
            "ISA",
            _value(interchange, "authorization_qualifier", "00"),
            str(interchange.get("authorization_info") or "").ljust(10),
            _value(interchange, "security_qualifier", "00"),
            str(interchange.get("security_info") or "").ljust(10),
            _value(interchange, "sender_id_qualifier", "ZZ"),
            _value(interchange, "sender_id", "SENDER").ljust(15),
            _value(interchange, "receiver_id_qualifier", "ZZ"),
            _value(interchange, "receiver_id", "RECEIVER").ljust(15),
            _value(interchange, "date", now.strftime("%y%m%d")),
            _value(interchange, "time", now.strftime("%H%M")),
            _value(interchange, "control_standards", "U"),
            _value(interchange, "version_number", "00401"),
            self._control_number(interchange, "control_number", "1"),
            _value(interchange, "acknowledgment_requested", "0"),
            _value(interchange, "usage_indicator", "P"),
            delimiters.sub_element,
        ]

    def _gs(self, dto: Eligibility270DTO, now: datetime) -> List[str]:
        group = dto.functional_group_data
        return [
            "GS",
            _value(group, "functional_identifier_code", "HS"),
            _value(group, "application_sender_code", "SENDER"),
            _value(group, "application_receiver_code", "RECEIVER"),
            _value(group, "date", now.strftime("%Y%m%d")),
            _value(group, "time", now.strftime("%H%M")),
            self._control_number(group, "group_control_number", "1"),
            _value(group, "responsible_agency_code", "X"),
            _value(group, "version_identifier_code", "005010X279A1"),
        ]

    def _ge(self, dto: Eligibility270DTO) -> List[str]:
        return ["GE", "1", self._control_number(dto.functional_group_data, "group_control_number", "1")]

    def _iea(self, dto: Eligibility270DTO) -> List[str]:
        return ["IEA", "1", self._control_number(dto.interchange_data, "control_number", "1")]

    @staticmethod
    def _control_number(data: Mapping[str, Any], key: str, default: str) -> str:
        return _value(data, key, default).strip().zfill(9)

    # --- Transaction set ---
    def _st(self, dto: Eligibility270DTO) -> List[str]:
        transaction = dto.transaction_data
        return [
            "ST",
            _value(transaction, "transaction_set_identifier_code", "270"),
            self._control_number(transaction, "transaction_set_control_number", "1"),
        ]

    def _se(self, dto: Eligibility270DTO, segment_count: int) -> List[str]:
        return [
            "SE",
            str(segment_count),
            self._control_number(dto.transaction_data, "transaction_set_control_number", "1"),
        ]

    def _bht(self, dto: Eligibility270DTO, now: datetime) -> List[str]:
        return [
            "BHT",
            "0022",  # hierarchical structure code
            "13",  # purpose: request
            dto.subscriber_id,
            now.strftime("%Y%m%d"),
            now.strftime("%H%M"),
        ]

    def _hl(self) -> List[str]:
        return ["HL", "1", "", "20", "1"]

    def _nm1(self, dto: Eligibility270DTO) -> List[str]:
        return [
            "NM1",
            "IL",
            "1",
            dto.subscriber_last_name,
            dto.subscriber_first_name,
            dto.subscriber_middle_name or "",
            "",  # prefix
            "",  # suffix
            "MI",
            dto.subscriber_id,
        ]

    def _trn(self, dto: Eligibility270DTO) -> List[str]:
        return ["TRN", "1", dto.subscriber_member_id, f"9{dto.subscriber_id}"]

    def _dmg(self, dto: Eligibility270DTO) -> List[str]:
        return ["DMG", "D8", dto.subscriber_date_of_birth or "", dto.subscriber_gender or ""]

    def _eq(self, inquiry: Mapping[str, Any]) -> List[str]:
        return [
            "EQ",
            str(inquiry.get("service_type_code") or "30"),
            str(inquiry.get("medical_procedure_code") or ""),
            str(inquiry.get("coverage_level_code") or ""),
            str(inquiry.get("insurance_type_code") or ""),
            str(inquiry.get("diagnosis_code_pointer") or ""),
        ]
