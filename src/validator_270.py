import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from transaction_validator import SegmentInput, TransactionValidator
from x12_models import Segment, ValidationResult

logger = logging.getLogger(__name__)

# Order matters: missing segments are reported in this order.
REQUIRED_SEGMENTS = ("ISA", "GS", "ST", "BHT", "HL", "NM1", "SE", "GE", "IEA")
OPTIONAL_SEGMENTS = ("TRN", "DMG", "DTP", "EQ", "QTY")
DEPRECATED_SEGMENTS = ("N3", "N4")

AUTHORIZATION_QUALIFIERS = ("00", "03")
SECURITY_QUALIFIERS = ("00", "01")

ENTITY_IDENTIFIER_CODES = frozenset({
    "IL", "30", "31", "36", "6Y", "9K", "D3", "E1", "EJ", "EXS", "GB", "GD", "J6", "LR",
    "P3", "P4", "P5", "P6", "P7", "P8", "P9", "PA", "PB", "PC", "PD", "PE", "PF", "PG",
    "PH", "PI", "PJ", "PK", "PL", "PM", "PN", "PO", "PP", "PQ", "PR", "PS", "PT", "PU",
    "PV", "PW", "PX", "PY", "PZ",
})

ISA_FIELDS = (
    "authorization_qualifier", "authorization_info", "security_qualifier", "security_info",
    "sender_id_qualifier", "sender_id", "receiver_id_qualifier", "receiver_id",
    "date", "time", "control_standards", "version_number", "control_number",
    "acknowledgment_requested", "usage_indicator", "component_element_separator",
)
GS_FIELDS = (
    "functional_identifier_code", "application_sender_code", "application_receiver_code",
    "date", "time", "group_control_number", "responsible_agency_code", "version_identifier_code",
)
ST_FIELDS = ("transaction_set_identifier_code", "transaction_set_control_number")
NM1_FIELDS = (
    "entity_identifier_code", "entity_type_qualifier", "last_name", "first_name", "middle_name",
    "prefix", "suffix", "identification_code_qualifier", "identification_code",
)
DMG_FIELDS = ("date_time_period_format_qualifier", "date_of_birth", "gender")
TRN_FIELDS = ("trace_type_code", "reference_identification", "originating_company_identifier")
EQ_FIELDS = (
    "service_type_code", "medical_procedure_code", "coverage_level_code",
    "insurance_type_code", "diagnosis_code_pointer",
)


def _project(segment: Segment, fields: Iterable[str]) -> Dict[str, str]:
    return {name: segment.get_element(position) or "" for position, name in enumerate(fields, start=1)}


class Validator270(TransactionValidator):
    """
    Validator for X12 270 (Eligibility/Benefit Inquiry) transaction sets.

    Runs presence, order and per-segment checks, collecting every error. Only a
    document without errors is projected into the structured `data` map.
    """

    def transaction_type(self) -> str:
        return "270"

    def required_segments(self) -> Set[str]:
        return set(REQUIRED_SEGMENTS)

    def optional_segments(self) -> Set[str]:
        return set(OPTIONAL_SEGMENTS)

    def validate(self, segments: Iterable[SegmentInput]) -> ValidationResult:
        segments = self._coerce_segments(segments)
        logger.debug(f"Validating {len(segments)} segments as a 270 transaction.")

        errors: List[str] = []
        missing = self._check_required_segments(segments)
        if missing:
            errors.append(f"Missing required segments: {', '.join(missing)}")
        errors.extend(self._validate_segment_order(segments))
        errors.extend(self._validate_individual_segments(segments))

        warnings = self._check_warnings(segments)

        data: Dict[str, Any] = {}
        if not errors:
            try:
                data = self._parse_segments(segments)
            except Exception as e:
                logger.debug(f"Projection of 270 segments failed: {e}", exc_info=True)
                errors.append(f"Error parsing segments: {e}")

        if errors:
            logger.debug(f"270 validation failed with {len(errors)} errors.")
            return ValidationResult.failure(errors, warnings, self.transaction_type())
        return ValidationResult.ok(data, self.transaction_type(), warnings)

    # --- Structural checks ---
    def _check_required_segments(self, segments: List[Segment]) -> List[str]:
        found = {segment.segment_id for segment in segments}
        return [segment_id for segment_id in REQUIRED_SEGMENTS if segment_id not in found]

    def _validate_segment_order(self, segments: List[Segment]) -> List[str]:
        errors: List[str] = []
        segment_ids = [segment.segment_id for segment in segments]
        if not segment_ids:
            return errors

        if segment_ids[0] != "ISA":
            errors.append("ISA segment must be the first segment")
        if segment_ids[-1] != "IEA":
            errors.append("IEA segment must be the last segment")

        gs_index = self._first_index(segment_ids, "GS")
        st_index = self._first_index(segment_ids, "ST")
        if gs_index is not None and st_index is not None and st_index < gs_index:
            errors.append("ST segment must come after GS segment")
        return errors

    def _validate_individual_segments(self, segments: List[Segment]) -> List[str]:
        errors: List[str] = []
        for segment in segments:
            if segment.segment_id == "ISA":
                errors.extend(self._validate_isa(segment))
            elif segment.segment_id == "ST":
                errors.extend(self._validate_st(segment))
            elif segment.segment_id == "NM1":
                errors.extend(self._validate_nm1(segment))
        return errors

    def _validate_isa(self, segment: Segment) -> List[str]:
        errors: List[str] = []
        if segment.element_count != 16:
            errors.append("ISA segment must have exactly 16 elements")
        if (segment.get_element(1) or "") not in AUTHORIZATION_QUALIFIERS:
            errors.append("ISA01: Invalid authorization information qualifier")
        if (segment.get_element(3) or "") not in SECURITY_QUALIFIERS:
            errors.append("ISA03: Invalid security information qualifier")
        return errors

    def _validate_st(self, segment: Segment) -> List[str]:
        errors: List[str] = []
        if segment.element_count < 2:
            errors.append("ST segment must have at least 2 elements")
        if segment.get_element(1) != "270":
            errors.append("ST01: Transaction set identifier code must be 270")
        return errors

    def _validate_nm1(self, segment: Segment) -> List[str]:
        errors: List[str] = []
        if segment.element_count < 3:
            errors.append("NM1 segment must have at least 3 elements")
        if (segment.get_element(1) or "") not in ENTITY_IDENTIFIER_CODES:
            errors.append(f"NM101: Invalid entity identifier code '{segment.get_element(1) or ''}'")
        return errors

    # --- Projection ---
    def _parse_segments(self, segments: List[Segment]) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "interchange": {},
            "functional_group": {},
            "transaction": {},
            "subscriber": {},
            "demographics": {},
            "trace": {},
            "inquiries": [],
        }
        for segment in segments:
            segment_id = segment.segment_id
            if segment_id == "ISA":
                data["interchange"] = _project(segment, ISA_FIELDS)
            elif segment_id == "GS":
                data["functional_group"] = _project(segment, GS_FIELDS)
            elif segment_id == "ST":
                data["transaction"] = _project(segment, ST_FIELDS)
            elif segment_id == "NM1" and segment.get_element(1) == "IL" and not data["subscriber"]:
                data["subscriber"] = _project(segment, NM1_FIELDS)
            elif segment_id == "DMG" and not data["demographics"]:
                data["demographics"] = _project(segment, DMG_FIELDS)
            elif segment_id == "TRN" and not data["trace"]:
                data["trace"] = _project(segment, TRN_FIELDS)
            elif segment_id == "EQ":
                inquiry = _project(segment, EQ_FIELDS)
                data["inquiries"].append({key: value for key, value in inquiry.items() if value})
        return data

    # --- Warnings ---
    def _check_warnings(self, segments: List[Segment]) -> List[str]:
        warnings: List[str] = []
        for segment in segments:
            if segment.segment_id in DEPRECATED_SEGMENTS:
                warnings.append(f"Segment {segment.segment_id} is deprecated in 270 transactions")

        subscribers = [s for s in segments if s.segment_id == "NM1" and s.get_element(1) == "IL"]
        if len(subscribers) > 1:
            warnings.append(
                f"Found {len(subscribers)} subscriber (NM1*IL) segments; only the first occurrence is used"
            )

        count_warning = self._check_segment_count(segments)
        if count_warning:
            warnings.append(count_warning)
        return warnings

    def _check_segment_count(self, segments: List[Segment]) -> Optional[str]:
        segment_ids = [segment.segment_id for segment in segments]
        st_index = self._first_index(segment_ids, "ST")
        if st_index is None:
            return None
        se_index = self._first_index(segment_ids, "SE", start=st_index)
        if se_index is None:
            return None
        declared = segments[se_index].get_element(1) or ""
        actual = se_index - st_index + 1
        if not declared.isdigit() or int(declared) != actual:
            return f"SE01 segment count '{declared}' does not match the {actual} segments from ST to SE"
        return None

    @staticmethod
    def _first_index(segment_ids: List[str], segment_id: str, start: int = 0) -> Optional[int]:
        for index in range(start, len(segment_ids)):
            if segment_ids[index] == segment_id:
                return index
        return None
