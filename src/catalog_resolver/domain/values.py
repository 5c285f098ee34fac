"""Tagged attribute values for schema-less catalog records."""

from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from catalog_resolver.domain.exceptions import ValidationError


class ValueKind(str, Enum):
    """Runtime type tag of an attribute value."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    OBJECT = "object"
    LIST = "list"
    NULL = "null"


class AttributeValue(BaseModel):
    """
    One typed value of a catalog record.

    Scalars keep their Python value. OBJECT values hold a dict of
    AttributeValue and LIST values a tuple of AttributeValue, so a record can
    be walked by path without inspecting arbitrary Python objects.
    """

    model_config = ConfigDict(frozen=True)

    kind: ValueKind
    value: Any = None

    @classmethod
    def of(cls, raw: Any) -> "AttributeValue":
        """Build a tagged value from raw JSON-like data."""
        if isinstance(raw, AttributeValue):
            return raw
        if raw is None:
            return cls(kind=ValueKind.NULL)
        # bool is a subclass of int and must be tagged first
        if isinstance(raw, bool):
            return cls(kind=ValueKind.BOOLEAN, value=raw)
        if isinstance(raw, int):
            return cls(kind=ValueKind.INTEGER, value=raw)
        if isinstance(raw, (float, Decimal)):
            return cls(kind=ValueKind.FLOAT, value=float(raw))
        if isinstance(raw, str):
            return cls(kind=ValueKind.STRING, value=raw)
        if isinstance(raw, Enum):
            return cls.of(raw.value)
        if isinstance(raw, (datetime, date)):
            return cls(kind=ValueKind.STRING, value=raw.isoformat())
        if isinstance(raw, Mapping):
            return cls(kind=ValueKind.OBJECT, value={str(k): cls.of(v) for k, v in raw.items()})
        if isinstance(raw, (list, tuple)):
            return cls(kind=ValueKind.LIST, value=tuple(cls.of(v) for v in raw))
        raise ValidationError(
            f"Unsupported attribute type: {type(raw).__name__}",
            details={"type": type(raw).__name__},
        )

    @property
    def is_numeric(self) -> bool:
        return self.kind in (ValueKind.INTEGER, ValueKind.FLOAT)

    @property
    def is_scalar(self) -> bool:
        return self.kind not in (ValueKind.OBJECT, ValueKind.LIST)

    def get(self, key: str) -> Optional["AttributeValue"]:
        """Return a member of an OBJECT value, None for anything else."""
        if self.kind is not ValueKind.OBJECT:
            return None
        return self.value.get(key)

    def as_python(self) -> Any:
        """Unwrap into plain Python data."""
        if self.kind is ValueKind.OBJECT:
            return {k: v.as_python() for k, v in self.value.items()}
        if self.kind is ValueKind.LIST:
            return [v.as_python() for v in self.value]
        return self.value

    def text(self) -> str:
        """Render the value the way it appears in summaries and lexical ordering."""
        if self.kind is ValueKind.BOOLEAN:
            return "true" if self.value else "false"
        if self.kind is ValueKind.NULL:
            return "null"
        if self.is_scalar:
            return str(self.value)
        return repr(self.as_python())

    def __str__(self) -> str:
        return self.text()
