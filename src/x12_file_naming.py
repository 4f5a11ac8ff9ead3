import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional

from x12_config import FileNamingConfig

logger = logging.getLogger(__name__)


class FileNamingService:
    """
    Generates output file names from patterns such as
    `x12_{transaction_type}_{timestamp}.txt`.

    The sequence counter is the only state kept between calls.
    """

    def __init__(self, config: Optional[FileNamingConfig] = None, clock: Callable[[], datetime] = datetime.now):
        self.config = config or FileNamingConfig()
        self.clock = clock
        self._sequence = 1

    def generate_file_name(
        self,
        transaction_type: str,
        data: Optional[Mapping[str, Any]] = None,
        custom_pattern: Optional[str] = None,
    ) -> str:
        pattern = self._pattern(transaction_type, custom_pattern)
        file_name = self._replace_placeholders(pattern, transaction_type, data or {})
        self._sequence += 1
        logger.debug(f"Generated file name '{file_name}' from pattern '{pattern}'.")
        return file_name

    def _pattern(self, transaction_type: str, custom_pattern: Optional[str]) -> str:
        if custom_pattern:
            return custom_pattern
        return self.config.transaction_patterns.get(transaction_type, self.config.default_pattern)

    def _replace_placeholders(self, pattern: str, transaction_type: str, data: Mapping[str, Any]) -> str:
        now = self.clock()
        replacements = {
            "{transaction_type}": transaction_type,
            "{timestamp}": now.strftime("%Y-%m-%d_%H-%M-%S"),
            "{date}": now.strftime("%Y-%m-%d"),
            "{time}": now.strftime("%H-%M-%S"),
            "{random}": f"{random.randint(0, 999999):06d}",
            "{sequence}": f"{self._sequence:06d}",
            "{provider_id}": str(data.get("provider_id", "")),
            "{payer_id}": str(data.get("payer_id", "")),
            "{member_id}": str(data.get("member_id", "")),
        }
        for placeholder, value in replacements.items():
            pattern = pattern.replace(placeholder, value)
        return pattern

    def reset_sequence(self) -> None:
        self._sequence = 1

    def set_sequence(self, sequence: int) -> None:
        self._sequence = sequence

    @property
    def current_sequence(self) -> int:
        return self._sequence

    def available_placeholders(self) -> Dict[str, str]:
        return dict(self.config.placeholders)
