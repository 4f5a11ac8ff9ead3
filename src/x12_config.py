import json
import logging
from pathlib import Path
from typing import Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from transaction_validator import TransactionValidator
from validator_270 import Validator270
from x12_delimiters import DelimiterSet, DEFAULT_DELIMITERS
from x12_exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Validator names a config file may refer to. Classes are never imported by name.
KNOWN_VALIDATORS: Dict[str, Type[TransactionValidator]] = {
    "Validator270": Validator270,
}

DEFAULT_PLACEHOLDERS: Dict[str, str] = {
    "{transaction_type}": "The transaction type (e.g., 270, 837)",
    "{timestamp}": "Current timestamp in Y-m-d_H-M-S format",
    "{date}": "Current date in Y-m-d format",
    "{time}": "Current time in H-M-S format",
    "{random}": "Random 6-digit number",
    "{sequence}": "Sequential number (increments per file)",
    "{provider_id}": "Provider ID from the data (if available)",
    "{payer_id}": "Payer ID from the data (if available)",
    "{member_id}": "Member ID from the data (if available)",
}


class FileStorageConfig(BaseModel):
    default_path: str = "storage/x12"
    backup_suffix: str = ".backup"


class FileNamingConfig(BaseModel):
    default_pattern: str = "x12_{transaction_type}_{timestamp}.txt"
    transaction_patterns: Dict[str, str] = Field(default_factory=dict)
    placeholders: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PLACEHOLDERS))


class X12ParserConfig(BaseModel):
    """Read-only settings handed to the parser, builder and validator factory."""
    model_config = ConfigDict(frozen=True)

    delimiters: DelimiterSet = DEFAULT_DELIMITERS
    transaction_delimiters: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    transaction_types: Dict[str, str] = Field(default_factory=lambda: {"270": "Validator270"})
    file_storage: FileStorageConfig = Field(default_factory=FileStorageConfig)
    file_naming: FileNamingConfig = Field(default_factory=FileNamingConfig)

    @field_validator("transaction_delimiters")
    @classmethod
    def _check_overrides(cls, value: Dict[str, Dict[str, str]]) -> Dict[str, Dict[str, str]]:
        for transaction_type, override in value.items():
            unknown = set(override) - {"segment", "element", "sub_element"}
            if unknown:
                raise ValueError(f"Unknown delimiter keys for transaction '{transaction_type}': {sorted(unknown)}")
            # Raises if the merged set is not usable.
            DEFAULT_DELIMITERS.replace(**override)
        return value

    @field_validator("transaction_types")
    @classmethod
    def _check_validators(cls, value: Dict[str, str]) -> Dict[str, str]:
        for transaction_type, validator_name in value.items():
            if validator_name not in KNOWN_VALIDATORS:
                raise ValueError(f"Unknown validator '{validator_name}' for transaction '{transaction_type}'")
        return value

    def validator_table(self) -> Dict[str, Type[TransactionValidator]]:
        return {transaction_type: KNOWN_VALIDATORS[name] for transaction_type, name in self.transaction_types.items()}


def load_config(config_path: Optional[str] = None) -> X12ParserConfig:
    """
    Loads settings from a JSON file.

    A missing path or file gives the defaults; a file that exists but cannot be
    read or validated raises ConfigurationError.
    """
    if not config_path:
        return X12ParserConfig()

    path = Path(config_path)
    if not path.exists():
        logger.warning(f"Config file does not exist: {path}. Using defaults.")
        return X12ParserConfig()

    try:
        with open(path, "r") as f:
            config_data = json.load(f)
        config = X12ParserConfig.model_validate(config_data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Failed to load config {path}: {e}")
        raise ConfigurationError(f"Invalid configuration file {path}: {e}") from e

    logger.info(f"Loaded X12 parser config from: {path}")
    return config
