"""Enumeration type definitions"""

from enum import Enum


class FormStatus(str, Enum):
    INIT = "init"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class RequestStatus(str, Enum):
    INIT = "init"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"
    CANCELED = "canceled"


class ValidatorKind(str, Enum):
    """How a field's validator spec was resolved"""

    NONE = "none"
    REQUIRED = "required"
    PREDICATE = "predicate"
    PATTERN = "pattern"
