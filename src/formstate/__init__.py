"""
formstate: schema-driven form state and async request lifecycle.

- Form aggregates static Fields and dynamic Groups built from a schema,
  validates on demand and produces submission snapshots.
- Request wraps one async operation with single-flight fetch, cooperative
  cancellation, refetch and retry.
"""

from .enums import FormStatus, RequestStatus, ValidatorKind
from .errors import (
    ConfigException,
    FieldNotFoundError,
    FormStateException,
    ItemNotFoundError,
    RequestCancelledError,
    RequestNotConfiguredError,
    SchemaException,
)
from .field import Field
from .form import Form, create_form
from .group import Group, GroupItem
from .request import CancelToken, Request
from .schema import FieldSchema, FormSchema, GroupSchema, load_schema, normalize_schema

__version__ = "0.1.0"

__all__ = [
    "CancelToken",
    "ConfigException",
    "Field",
    "FieldNotFoundError",
    "FieldSchema",
    "Form",
    "FormSchema",
    "FormStateException",
    "FormStatus",
    "Group",
    "GroupItem",
    "GroupSchema",
    "ItemNotFoundError",
    "Request",
    "RequestCancelledError",
    "RequestNotConfiguredError",
    "RequestStatus",
    "SchemaException",
    "ValidatorKind",
    "__version__",
    "create_form",
    "load_schema",
    "normalize_schema",
]
