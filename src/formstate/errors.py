"""Exception definitions for formstate"""


class FormStateException(Exception):
    """Base exception for all formstate errors.

    Validation failures are never raised; they are returned as data by
    ``Form.valid()``. Exceptions are reserved for malformed schemas,
    configuration problems and the few misuses that cannot be recovered.
    """

    pass


class SchemaException(FormStateException):
    """Raised when a form schema cannot be normalized.

    Use this exception when:
    - A schema entry has the wrong shape (missing id, wrong types)
    - Field or group ids are duplicated
    - A reserved key is used as a field id
    - A pattern string is not a valid regular expression
    """

    pass


class ConfigException(FormStateException):
    """Raised when configuration validation or loading fails."""

    pass


class ItemNotFoundError(FormStateException):
    """Raised when a group item id does not exist in a non-empty group."""

    pass


class FieldNotFoundError(FormStateException):
    """Raised when a field id is not part of a form or a group item."""

    pass


class RequestNotConfiguredError(FormStateException):
    """Raised when ``Request.fetch`` is called before ``Request.set``.

    This is the only request misuse treated as fatal.
    """

    pass


class RequestCancelledError(FormStateException):
    """Raised by ``CancelToken.raise_if_cancelled`` inside an operation."""

    pass
