"""Single validated value cell."""

import copy
import logging
import re
from typing import Any, Callable, Optional

from .consts import DEFAULT_MESSAGES, REQUIRED
from .enums import ValidatorKind
from .schema import FieldSchema

logger = logging.getLogger(__name__)

_UNSET = object()

# Empty value per type category, used by Field.clear()
_EMPTY_VALUES = {bool: False, int: 0, float: 0.0, str: "", list: [], dict: {}}


def _empty_like(value: Any) -> Any:
    for kind, empty in _EMPTY_VALUES.items():
        if type(value) is kind:
            return copy.copy(empty)
    return None


class Field:
    """A named value with a default, a validator and an error message.

    Validation is pull-based: ``set_value`` never validates, callers ask
    ``valid()`` when they need an answer.
    """

    def __init__(self, id: str, default: Any = _UNSET):
        self.id = id
        self._default = default if default is _UNSET else copy.deepcopy(default)
        self.value: Any = None if default is _UNSET else copy.deepcopy(default)
        self.message: Optional[str] = None
        self._kind = ValidatorKind.NONE
        self._validator: Optional[Callable[[Any], bool]] = None

    def __repr__(self) -> str:
        return f"Field(id={self.id!r}, value={self.value!r}, validator={self._kind.value})"

    @property
    def default(self) -> Any:
        return None if self._default is _UNSET else self._default

    @property
    def validator_kind(self) -> ValidatorKind:
        return self._kind

    @property
    def error_message(self) -> str:
        if self.message:
            return self.message
        return DEFAULT_MESSAGES[self._kind].format(key=self.id)

    def set_validator(self, spec: Any) -> None:
        """Resolve a validator spec into a callable.

        Accepted specs are ``"required"`` (truthiness), a predicate taking the
        value, a compiled regular expression searched in ``str(value)``, or
        ``None``. Anything else leaves the field always valid.
        """
        if spec is None:
            self._kind, self._validator = ValidatorKind.NONE, None
        elif isinstance(spec, str) and spec == REQUIRED:
            self._kind, self._validator = ValidatorKind.REQUIRED, bool
        elif isinstance(spec, re.Pattern):
            self._kind = ValidatorKind.PATTERN
            self._validator = lambda value: spec.search(str(value)) is not None
        elif callable(spec):
            self._kind = ValidatorKind.PREDICATE
            self._validator = lambda value: bool(spec(value))
        else:
            logger.debug(f"Unrecognized validator for field {self.id}: {spec!r}, ignoring")
            self._kind, self._validator = ValidatorKind.NONE, None

    def init(self, schema: FieldSchema) -> None:
        if self._default is _UNSET:
            self._default = copy.deepcopy(schema.default)
        self.set_value(copy.deepcopy(self._default))
        self.set_validator(schema.validator)
        if schema.message:
            self.message = schema.message

    def set_value(self, value: Any) -> None:
        self.value = value

    def valid(self, value: Any = _UNSET) -> bool:
        """Check ``value`` (the current value by default) without mutating."""
        if self._validator is None:
            return True
        return self._validator(self.value if value is _UNSET else value)

    def reset(self) -> None:
        self.value = copy.deepcopy(self.default)

    def clear(self) -> None:
        """Empty the value while keeping the default for a later reset."""
        self.value = _empty_like(self.default)
