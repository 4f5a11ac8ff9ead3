import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from eligibility_270 import Eligibility270DTO
from validator_factory import ValidatorFactory
from x12_builder import X12Builder
from x12_config import X12ParserConfig
from x12_exceptions import InvalidEligibilityDataError, UnsupportedTransactionTypeError, X12Error, X12FileError
from x12_file_naming import FileNamingService
from x12_file_repository import FileRepository
from x12_models import ParseResult, ValidationResult
from x12_parser import X12Parser
from x12_sanitizer import InputSanitizer

logger = logging.getLogger(__name__)


class X12ParserService:
    """Parses, validates and builds X12 documents, optionally reading and writing files."""

    def __init__(
        self,
        parser: Optional[X12Parser] = None,
        validator_factory: Optional[ValidatorFactory] = None,
        builder: Optional[X12Builder] = None,
        file_repository: Optional[FileRepository] = None,
        file_naming: Optional[FileNamingService] = None,
        sanitizer: Optional[InputSanitizer] = None,
        config: Optional[X12ParserConfig] = None,
    ):
        self.config = config or X12ParserConfig()
        self.sanitizer = sanitizer or InputSanitizer()
        self.parser = parser or X12Parser(self.config.delimiters, self.config.transaction_delimiters, self.sanitizer)
        self.validator_factory = validator_factory or ValidatorFactory(self.config.validator_table())
        self.builder = builder or X12Builder(self.config.delimiters, self.config.transaction_delimiters)
        self.file_repository = file_repository or FileRepository(self.config.file_storage.backup_suffix)
        self.file_naming = file_naming or FileNamingService(self.config.file_naming)

    @classmethod
    def from_config(cls, config: X12ParserConfig) -> "X12ParserService":
        return cls(config=config)

    # --- Decoding ---
    def validate_content(self, content: str, expected_type: Optional[str] = None) -> ValidationResult:
        """Parses and validates content, returning every error as data."""
        parse_result = self.parser.parse_content(content, expected_type)
        return self._validate_parse_result(parse_result)

    def parse_content(self, content: str, expected_type: Optional[str] = None) -> Dict[str, Any]:
        """Parses and validates content, raising X12Error unless both steps succeed."""
        parse_result = self.parser.parse_content(content, expected_type)
        if not parse_result.is_successful():
            raise X12Error(f"Failed to parse content: {', '.join(parse_result.errors)}")

        validation_result = self._validate_parse_result(parse_result)
        if not validation_result.is_successful():
            raise X12Error(f"Validation failed: {', '.join(validation_result.errors)}")
        for warning in validation_result.warnings:
            logger.warning(f"{parse_result.transaction_type} validation warning: {warning}")
        return validation_result.data or {}

    def parse_to_dto(self, content: str) -> Eligibility270DTO:
        data = self.parse_content(content, "270")
        return Eligibility270DTO.from_parsed_data(data)

    def parse_file(self, file_path: str) -> Dict[str, Any]:
        logger.info(f"Parsing X12 file: {file_path}")
        return self.parse_content(self.file_repository.load(file_path))

    def parse_file_to_json(self, file_path: str, pretty_print: bool = True) -> str:
        data = self.parse_file(file_path)
        return json.dumps(data, indent=2 if pretty_print else None)

    def validate_file(self, file_path: str) -> ValidationResult:
        logger.info(f"Validating X12 file: {file_path}")
        try:
            content = self.file_repository.load(file_path)
        except X12FileError as e:
            return ValidationResult.failure([str(e)])
        return self.validate_content(content)

    def _validate_parse_result(self, parse_result: ParseResult) -> ValidationResult:
        if not parse_result.is_successful():
            return ValidationResult.failure(parse_result.errors, parse_result.warnings)
        try:
            validator = self.validator_factory.make(parse_result.transaction_type, parse_result.delimiters)
        except UnsupportedTransactionTypeError as e:
            return ValidationResult.failure([str(e)], transaction_type=parse_result.transaction_type)

        result = validator.validate(parse_result.segments)
        logger.info(
            f"Validation completed: transaction={result.transaction_type}, "
            f"valid={result.is_successful()}, errors={len(result.errors)}, warnings={len(result.warnings)}"
        )
        return result

    # --- Encoding ---
    def build_from_json(self, json_data: Mapping[str, Any], transaction_type: str = "270") -> str:
        if not isinstance(json_data, Mapping):
            raise InvalidEligibilityDataError(f"JSON input must be an object, got {type(json_data).__name__}")
        sanitized = self.sanitizer.sanitize_json_data(dict(json_data))
        return self.builder.build_from_array(sanitized, transaction_type)

    def build_from_270_dto(self, dto: Eligibility270DTO) -> str:
        return self.builder.build_from_270_dto(dto)

    # --- Files ---
    def save_to_file(self, content: str, file_path: str) -> bool:
        return self.file_repository.save(content, file_path)

    def build_and_save(self, json_data: Mapping[str, Any], output_path: str, transaction_type: str = "270") -> bool:
        content = self.build_from_json(json_data, transaction_type)
        return self.save_to_file(content, output_path)

    def parse_and_save_as_json(self, input_path: str, output_path: str, pretty_print: bool = True) -> bool:
        return self.save_to_file(self.parse_file_to_json(input_path, pretty_print), output_path)

    def get_file_info(self, file_path: str) -> Dict[str, Any]:
        parse_result = self.parser.parse_file(file_path)
        return {
            "file_path": file_path,
            "file_size": self.file_repository.get_size(file_path) if self.file_repository.exists(file_path) else 0,
            "transaction_type": parse_result.transaction_type,
            "segment_count": parse_result.segment_count,
            "is_valid": parse_result.is_successful(),
            "errors": parse_result.errors,
            "warnings": parse_result.warnings,
        }

    def build_and_save_with_auto_name(
        self,
        json_data: Mapping[str, Any],
        transaction_type: str = "270",
        data: Optional[Mapping[str, Any]] = None,
        custom_pattern: Optional[str] = None,
        output_directory: Optional[str] = None,
    ) -> str:
        content = self.build_from_json(json_data, transaction_type)
        # Names are only generated once the content has been built.
        file_name = self.file_naming.generate_file_name(transaction_type, data, custom_pattern)
        directory = Path(output_directory or self.config.file_storage.default_path)
        file_path = str(directory / file_name)
        self.save_to_file(content, file_path)
        return file_path

    def generate_file_name(
        self, transaction_type: str, data: Optional[Mapping[str, Any]] = None, custom_pattern: Optional[str] = None
    ) -> str:
        return self.file_naming.generate_file_name(transaction_type, data, custom_pattern)

    def available_placeholders(self) -> Dict[str, str]:
        return self.file_naming.available_placeholders()

    def reset_sequence(self) -> None:
        self.file_naming.reset_sequence()

    def set_sequence(self, sequence: int) -> None:
        self.file_naming.set_sequence(sequence)

    def supported_transaction_types(self) -> List[str]:
        return self.validator_factory.supported_transaction_types()

    def is_transaction_type_supported(self, transaction_type: str) -> bool:
        return self.validator_factory.is_supported(transaction_type)
