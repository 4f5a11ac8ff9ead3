import logging
from typing import Dict, List, Mapping, Optional, Type

from transaction_validator import TransactionValidator
from validator_270 import Validator270
from x12_delimiters import DelimiterSet, DEFAULT_DELIMITERS
from x12_exceptions import UnsupportedTransactionTypeError

logger = logging.getLogger(__name__)

DEFAULT_VALIDATORS: Dict[str, Type[TransactionValidator]] = {
    "270": Validator270,
}


class ValidatorFactory:
    """
    Creates the validator registered for a transaction type.

    The table is a plain mapping handed in by the caller (or the default
    above); nothing is resolved from global configuration.
    """

    def __init__(self, validators: Optional[Mapping[str, Type[TransactionValidator]]] = None):
        self._validators: Dict[str, Type[TransactionValidator]] = dict(
            DEFAULT_VALIDATORS if validators is None else validators
        )

    def make(self, transaction_type: Optional[str], delimiters: DelimiterSet = DEFAULT_DELIMITERS) -> TransactionValidator:
        validator_class = self._validators.get(transaction_type or "")
        if validator_class is None:
            raise UnsupportedTransactionTypeError(transaction_type)
        logger.debug(f"Creating {validator_class.__name__} for transaction '{transaction_type}'.")
        return validator_class(delimiters)

    def supported_transaction_types(self) -> List[str]:
        return list(self._validators)

    def is_supported(self, transaction_type: str) -> bool:
        return transaction_type in self._validators

    def validator_class(self, transaction_type: str) -> Optional[Type[TransactionValidator]]:
        return self._validators.get(transaction_type)
