"""Form schema models and normalization."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

import tomlkit
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)
from tomlkit.exceptions import ParseError

from .consts import ITEM_ID_KEY, RESERVED_STATUS_KEY, UNBOUNDED
from .errors import SchemaException

logger = logging.getLogger(__name__)

Callback = Callable[[dict[str, Any]], Any]


class FieldSchema(BaseModel):
    """One static field, or one field template of a group item."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    default: Any = None
    validator: Any = None
    pattern: Optional[str] = None
    message: Optional[str] = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field id cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def compile_pattern(self) -> "FieldSchema":
        if self.pattern is None:
            return self

        if self.validator is not None:
            raise ValueError(
                f"Field {self.id}: 'validator' and 'pattern' are mutually exclusive"
            )
        try:
            self.validator = re.compile(self.pattern)
        except re.error as e:
            raise ValueError(f"Field {self.id}: invalid pattern {self.pattern!r}: {e}")
        return self

    @field_serializer("validator")
    def serialize_validator(self, validator: Any) -> Optional[str]:
        if validator is None or isinstance(validator, str):
            return validator
        if isinstance(validator, re.Pattern):
            return validator.pattern
        return getattr(validator, "__name__", "predicate")


class GroupSchema(BaseModel):
    """A dynamic group: an item template plus the items seeded at init."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    limit: int = Field(default=UNBOUNDED, ge=UNBOUNDED)
    item_fields: list[FieldSchema] = Field(default_factory=list, alias="schema")
    defaults: list[dict[str, Any]] = Field(default_factory=list, alias="default")
    on_add: Optional[Callback] = Field(default=None, exclude=True)
    on_remove: Optional[Callback] = Field(default=None, exclude=True)
    on_edit: Optional[Callback] = Field(default=None, exclude=True)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Group id cannot be empty")
        return v.strip()

    @field_validator("item_fields", mode="before")
    @classmethod
    def coerce_mapping_to_list(cls, v):
        return _coerce_named_mapping(v)

    @model_validator(mode="after")
    def validate_item_fields(self) -> "GroupSchema":
        seen = set()
        for field in self.item_fields:
            if field.id == ITEM_ID_KEY:
                raise ValueError(
                    f"Group {self.id}: '{ITEM_ID_KEY}' is reserved for item ids"
                )
            if field.id in seen:
                raise ValueError(f"Group {self.id}: duplicate field id '{field.id}'")
            seen.add(field.id)

        if self.limit != UNBOUNDED and len(self.defaults) > self.limit:
            logger.warning(
                f"Group {self.id} declares {len(self.defaults)} default items "
                f"but limit is {self.limit}; extra items will be rejected"
            )
        return self


class FormSchema(BaseModel):
    static: list[FieldSchema] = Field(default_factory=list)
    dynamic: list[GroupSchema] = Field(default_factory=list)

    @field_validator("static", "dynamic", mode="before")
    @classmethod
    def coerce_mapping_to_list(cls, v):
        return _coerce_named_mapping(v)

    @model_validator(mode="after")
    def validate_ids(self) -> "FormSchema":
        seen = set()
        for entry in [*self.static, *self.dynamic]:
            if entry.id == RESERVED_STATUS_KEY:
                raise ValueError(f"'{RESERVED_STATUS_KEY}' is a reserved form key")
            if entry.id in seen:
                raise ValueError(f"Duplicate form key '{entry.id}'")
            seen.add(entry.id)
        return self

    @property
    def keys(self) -> list[str]:
        return [entry.id for entry in [*self.static, *self.dynamic]]


def _coerce_named_mapping(v):
    """Turn ``{name: {...}}`` into ``[{"id": name, ...}]``, keeping order."""
    if v is None:
        return []
    if isinstance(v, Mapping):
        return [
            {"id": key, **value} if isinstance(value, Mapping) else value
            for key, value in v.items()
        ]
    return v


def normalize_schema(schema: FormSchema | Mapping[str, Any]) -> FormSchema:
    """Normalize a raw schema into a FormSchema.

    Accepts either the explicit form ``{"static": [...], "dynamic": [...]}``
    or the shorthand ``{name: {"default": ..., "validator": ...}}`` where
    every entry is a static field.

    Raises:
        SchemaException: If the schema shape is invalid
    """
    if isinstance(schema, FormSchema):
        return schema

    if not isinstance(schema, Mapping):
        raise SchemaException(
            f"Schema must be a mapping, got {type(schema).__name__}"
        )

    if "static" in schema or "dynamic" in schema:
        data = dict(schema)
    else:
        logger.debug(f"Normalizing shorthand schema with {len(schema)} fields")
        data = {"static": dict(schema)}

    try:
        return FormSchema.model_validate(data)
    except ValidationError as e:
        error_lines = ["Schema validation failed:"]
        for error in e.errors():
            loc = " -> ".join(str(item) for item in error["loc"])
            if loc:
                error_lines.append(f"  - {loc}: {error['msg']}")
            else:
                error_lines.append(f"  - {error['msg']}")
        raise SchemaException("\n".join(error_lines)) from e


def load_schema(schema_path: str | Path) -> FormSchema:
    """Load and normalize a schema from a TOML file.

    Raises:
        SchemaException: If the file is missing, unparsable or invalid
    """
    path = Path(schema_path)
    if not path.exists():
        raise SchemaException(f"Schema file not found: {schema_path}")

    try:
        raw = tomlkit.parse(path.read_text(encoding="utf-8")).unwrap()
    except ParseError as e:
        raise SchemaException(f"Invalid TOML in {schema_path}: {e}") from e

    return normalize_schema(raw)
