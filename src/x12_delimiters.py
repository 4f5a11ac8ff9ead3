import logging
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, model_validator

logger = logging.getLogger(__name__)


class DelimiterSet(BaseModel):
    """The three separators used to read or write one X12 interchange."""
    model_config = ConfigDict(frozen=True)

    segment: str = "~"
    element: str = "*"
    sub_element: str = ">"

    @model_validator(mode="after")
    def _check_distinct(self) -> "DelimiterSet":
        values = (self.segment, self.element, self.sub_element)
        if any(not value for value in values):
            raise ValueError("Delimiters must be non-empty")
        if any(not value.strip() for value in values):
            raise ValueError(f"Delimiters must not be whitespace, got {values}")
        if len(set(values)) != 3:
            raise ValueError(f"Delimiters must be distinct, got {values}")
        return self

    def replace(self, **overrides: str) -> "DelimiterSet":
        """Return a new, validated set with the given separators replaced."""
        merged = self.model_dump()
        merged.update({key: value for key, value in overrides.items() if value is not None})
        return DelimiterSet(**merged)

    def characters(self) -> set:
        return set(self.segment) | set(self.element) | set(self.sub_element)

    def as_dict(self) -> Dict[str, str]:
        return self.model_dump()


DEFAULT_DELIMITERS = DelimiterSet()


def resolve_delimiters(
    base: DelimiterSet,
    transaction_delimiters: Mapping[str, Mapping[str, str]],
    transaction_type: Optional[str] = None,
    explicit: Optional[DelimiterSet] = None,
    only_when_default: bool = False,
) -> DelimiterSet:
    """
    Picks the delimiter set for a single parse or build call.

    An explicit set always wins. Otherwise, when a transaction type is given and
    has a configured override, the override is merged over the defaults. With
    `only_when_default` the override is applied only if `base` is still the
    package default, so a caller-chosen set is never replaced behind its back.
    """
    if explicit is not None:
        return explicit
    if not transaction_type:
        return base
    if only_when_default and base != DEFAULT_DELIMITERS:
        logger.debug(f"Custom delimiters active, ignoring override for transaction '{transaction_type}'.")
        return base
    override = transaction_delimiters.get(transaction_type)
    if override:
        logger.debug(f"Applying delimiter override for transaction '{transaction_type}': {dict(override)}")
        return DEFAULT_DELIMITERS.replace(**dict(override))
    return base
