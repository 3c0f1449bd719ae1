"""Configuration system: turning design, manifest and config files into
validated Python objects.

Designs, manifests and the service config record are JSON or YAML on disk
and are validated into Pydantic models. Field names follow the persisted
camelCase keys through aliases, while Python code uses snake_case.
"""
from __future__ import annotations

import enum
import re
from typing import Annotated, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict


T = TypeVar("T")

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
VERSION_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


class ValidationType(enum.Enum):
    """Types of value validation we support."""

    SHOULD_BE_POSITIVE = "should_be_positive"
    SHOULD_BE_NON_EMPTY = "should_be_non_empty"


class Config(BaseModel):
    """Base class for all configuration records.

    Accepts both the persisted (camelCase) keys and the Python field names,
    and rejects unknown keys so typos in hand-written files surface early.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    def dump(self) -> dict[str, object]:
        """Serialize with persisted key names, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @staticmethod
    def check(value: T, validation_type: ValidationType) -> T:
        """Validate a value against a constraint, raising ValueError on failure."""
        match validation_type:
            case ValidationType.SHOULD_BE_POSITIVE:
                if value <= 0:  # type: ignore[operator]
                    raise ValueError(
                        f"Validation failed: {validation_type.name}: {value!r} <= 0"
                    )
                return value
            case ValidationType.SHOULD_BE_NON_EMPTY:
                if not str(value).strip():
                    raise ValueError(
                        f"Validation failed: {validation_type.name}: value is empty"
                    )
                return value
            case _:
                raise ValueError(
                    f"Validation failed: unknown validation type {validation_type}"
                )


def is_address(value: object) -> bool:
    """Return True when value is a syntactically valid contract address."""
    return isinstance(value, str) and ADDRESS_PATTERN.match(value) is not None


# Type aliases for validated primitives; use these in config models
Identifier = Annotated[
    str,
    AfterValidator(lambda v: Config.check(v, ValidationType.SHOULD_BE_NON_EMPTY)),
]
PositiveFloat = Annotated[
    float,
    AfterValidator(lambda v: Config.check(v, ValidationType.SHOULD_BE_POSITIVE)),
]
