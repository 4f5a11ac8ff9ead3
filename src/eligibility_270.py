import copy
import re
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from x12_exceptions import InvalidEligibilityDataError

_DATE_OF_BIRTH = re.compile(r"[0-9]{8}")
_STATE = re.compile(r"[A-Z]{2}")
_ZIP = re.compile(r"[0-9]{5}(-[0-9]{4})?")


class Eligibility270DTO(BaseModel):
    """
    A decoded 270 eligibility inquiry.

    Instances are immutable and always valid: every construction path, including
    the `with_*` helpers, re-runs `validate_fields()`, which raises
    InvalidEligibilityDataError for the first rule that fails.
    """
    model_config = ConfigDict(frozen=True, extra="forbid", coerce_numbers_to_str=True)

    subscriber_id: Optional[str] = None
    subscriber_first_name: Optional[str] = None
    subscriber_last_name: Optional[str] = None
    subscriber_middle_name: Optional[str] = None
    subscriber_date_of_birth: Optional[str] = None
    subscriber_gender: Optional[str] = None
    subscriber_address: Optional[str] = None
    subscriber_city: Optional[str] = None
    subscriber_state: Optional[str] = None
    subscriber_zip: Optional[str] = None
    subscriber_group_number: Optional[str] = None
    subscriber_member_id: Optional[str] = None
    inquiries: List[Dict[str, Any]] = Field(default_factory=list)
    interchange_data: Dict[str, Any] = Field(default_factory=dict)
    functional_group_data: Dict[str, Any] = Field(default_factory=dict)
    transaction_data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("inquiries", "interchange_data", "functional_group_data", "transaction_data", mode="before")
    @classmethod
    def _copy_containers(cls, value: Any) -> Any:
        if value is None:
            return value
        return copy.deepcopy(value)

    @model_validator(mode="after")
    def _run_validation(self) -> "Eligibility270DTO":
        self.validate_fields()
        return self

    # --- Construction ---
    @classmethod
    def from_parsed_data(cls, data: Mapping[str, Any]) -> "Eligibility270DTO":
        """Builds a DTO from the structured map produced by Validator270."""
        if not isinstance(data, Mapping):
            raise InvalidEligibilityDataError(f"Eligibility data must be a mapping, got {type(data).__name__}")
        subscriber = data.get("subscriber") or {}
        demographics = data.get("demographics") or {}
        trace = data.get("trace") or {}

        return cls._create(
            subscriber_id=subscriber.get("id") or subscriber.get("identification_code") or "",
            subscriber_first_name=subscriber.get("first_name") or "",
            subscriber_last_name=subscriber.get("last_name") or "",
            subscriber_middle_name=subscriber.get("middle_name") or None,
            subscriber_date_of_birth=subscriber.get("date_of_birth") or demographics.get("date_of_birth") or None,
            subscriber_gender=subscriber.get("gender") or demographics.get("gender") or None,
            subscriber_address=subscriber.get("address") or None,
            subscriber_city=subscriber.get("city") or None,
            subscriber_state=subscriber.get("state") or None,
            subscriber_zip=subscriber.get("zip") or None,
            subscriber_group_number=subscriber.get("group_number") or None,
            subscriber_member_id=subscriber.get("member_id") or trace.get("reference_identification") or None,
            inquiries=data.get("inquiries") or [],
            interchange_data=data.get("interchange") or {},
            functional_group_data=data.get("functional_group") or {},
            transaction_data=data.get("transaction") or {},
        )

    @classmethod
    def from_array(cls, data: Mapping[str, Any]) -> "Eligibility270DTO":
        """Builds a DTO from flat `subscriber_*` keyed data, e.g. decoded JSON."""
        if not isinstance(data, Mapping):
            raise InvalidEligibilityDataError(f"Eligibility data must be a mapping, got {type(data).__name__}")
        return cls._create(
            subscriber_id=data.get("subscriber_id") or "",
            subscriber_first_name=data.get("subscriber_first_name") or "",
            subscriber_last_name=data.get("subscriber_last_name") or "",
            subscriber_middle_name=data.get("subscriber_middle_name"),
            subscriber_date_of_birth=data.get("subscriber_date_of_birth"),
            subscriber_gender=data.get("subscriber_gender"),
            subscriber_address=data.get("subscriber_address"),
            subscriber_city=data.get("subscriber_city"),
            subscriber_state=data.get("subscriber_state"),
            subscriber_zip=data.get("subscriber_zip"),
            subscriber_group_number=data.get("subscriber_group_number"),
            subscriber_member_id=data.get("subscriber_member_id"),
            inquiries=data.get("inquiries") or [],
            interchange_data=data.get("interchange_data") or {},
            functional_group_data=data.get("functional_group_data") or {},
            transaction_data=data.get("transaction_data") or {},
        )

    @classmethod
    def _create(cls, **values: Any) -> "Eligibility270DTO":
        try:
            return cls(**values)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise InvalidEligibilityDataError(f"Invalid eligibility data at {location}: {first['msg']}") from e

    def to_array(self) -> Dict[str, Any]:
        return self.model_dump()

    # --- Validation ---
    def validate_fields(self) -> None:
        if not self.subscriber_id:
            raise InvalidEligibilityDataError("Subscriber ID is required")
        if not self.subscriber_first_name:
            raise InvalidEligibilityDataError("Subscriber first name is required")
        if not self.subscriber_last_name:
            raise InvalidEligibilityDataError("Subscriber last name is required")

        if self.subscriber_date_of_birth and not _DATE_OF_BIRTH.fullmatch(self.subscriber_date_of_birth):
            raise InvalidEligibilityDataError("Date of birth must be in YYYYMMDD format")
        if self.subscriber_gender and self.subscriber_gender.upper() not in ("M", "F"):
            raise InvalidEligibilityDataError("Gender must be M or F")
        if self.subscriber_state and not _STATE.fullmatch(self.subscriber_state.upper()):
            raise InvalidEligibilityDataError("Subscriber state must be a 2-letter code")
        if self.subscriber_zip and not _ZIP.fullmatch(self.subscriber_zip):
            raise InvalidEligibilityDataError("Subscriber zip code must be in 12345 or 12345-6789 format")

        if not self.inquiries:
            raise InvalidEligibilityDataError("At least one inquiry is required")
        for inquiry in self.inquiries:
            if inquiry.get("service_type_code") is None:
                raise InvalidEligibilityDataError("Service type code is required for each inquiry")
            if len(str(inquiry["service_type_code"])) != 2:
                raise InvalidEligibilityDataError("Service type code must be 2 characters")

    # --- Derived views ---
    def subscriber_full_name(self) -> str:
        parts = [self.subscriber_first_name, self.subscriber_middle_name, self.subscriber_last_name]
        return " ".join(part.strip() for part in parts if part and part.strip())

    def subscriber_full_address(self) -> Optional[str]:
        if not self.subscriber_address:
            return None
        address = self.subscriber_address
        if self.subscriber_city:
            address += f", {self.subscriber_city}"
        if self.subscriber_state:
            address += f", {self.subscriber_state}"
        if self.subscriber_zip:
            address += f" {self.subscriber_zip}"
        return address

    def has_complete_address(self) -> bool:
        return all((self.subscriber_address, self.subscriber_city, self.subscriber_state, self.subscriber_zip))

    def has_demographics(self) -> bool:
        return bool(self.subscriber_date_of_birth or self.subscriber_gender)

    # --- Copy-on-write updates ---
    def with_fields(self, **changes: Any) -> "Eligibility270DTO":
        """Returns a new, re-validated instance with `changes` applied."""
        values = self.to_array()
        values.update(changes)
        return type(self)(**values)

    def with_subscriber_id(self, subscriber_id: str) -> "Eligibility270DTO":
        return self.with_fields(subscriber_id=subscriber_id)

    def with_subscriber_name(self, first_name: str, last_name: str, middle_name: Optional[str] = None) -> "Eligibility270DTO":
        return self.with_fields(
            subscriber_first_name=first_name,
            subscriber_last_name=last_name,
            subscriber_middle_name=middle_name,
        )
