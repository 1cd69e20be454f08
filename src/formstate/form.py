"""Form: static fields plus dynamic groups with a submission lifecycle."""

from __future__ import annotations

import copy
import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .consts import ITEM_ID_KEY, RESERVED_STATUS_KEY
from .enums import FormStatus
from .errors import FieldNotFoundError
from .field import Field
from .group import Group, GroupItem
from .schema import FormSchema, normalize_schema

logger = logging.getLogger(__name__)


class Form:
    """Validated form state.

    Status lifecycle::

        init --valid(), no errors--> pending --submit()--> success
        init/pending --valid(), errors--> error
        any --reset()--> init

    ``pending`` means "validated and ready to submit"; nothing in a form
    ever suspends.
    """

    def __init__(self, schema: FormSchema | Mapping[str, Any], name: Optional[str] = None):
        self.name = name or type(self).__name__
        self.status = FormStatus.INIT
        self.errors: list[dict[str, Any]] = []
        self.submission: dict[str, Any] = {}
        self._fields: dict[str, Field] = {}
        self._groups: dict[str, Group] = {}
        self.init(normalize_schema(schema))

    def __repr__(self) -> str:
        return (
            f"Form(name={self.name!r}, status={self.status.value}, "
            f"fields={list(self._fields)}, groups={list(self._groups)})"
        )

    @property
    def loading(self) -> bool:
        return self.status == FormStatus.PENDING

    @property
    def fields(self) -> Mapping[str, Field]:
        return MappingProxyType(self._fields)

    @property
    def groups(self) -> Mapping[str, Group]:
        return MappingProxyType(self._groups)

    @property
    def values(self) -> dict[str, Any]:
        """Current values, shaped like a submission."""
        output: dict[str, Any] = {}
        for key, field in self._fields.items():
            output[key] = copy.deepcopy(field.value)
        for key, group in self._groups.items():
            output[key] = group.get_values()
        return output

    def init(self, schema: FormSchema) -> None:
        """Materialize fields and groups from a normalized schema.

        Fields that already exist are re-initialized in place and keep
        their default. Existing groups are left as they are.
        """
        self.status = FormStatus.INIT

        for field_schema in schema.static:
            field = self._fields.get(field_schema.id) or Field(field_schema.id)
            field.init(field_schema)
            self._fields[field.id] = field

        for group_schema in schema.dynamic:
            if group_schema.id in self._groups:
                continue
            group = Group(group_schema)
            for values in group_schema.defaults:
                group.add_item(values, item_id=values.get(ITEM_ID_KEY), is_init=True)
            self._groups[group.id] = group

        logger.debug(
            f"Form {self.name} initialized with {len(self._fields)} fields "
            f"and {len(self._groups)} groups"
        )

    def get_group(self, group_id: str) -> Optional[Group]:
        group = self._groups.get(group_id)
        if not isinstance(group, Group):
            return None
        return group

    def get_value(self, key: str) -> Any:
        field = self._fields.get(key)
        if field is not None:
            return field.value
        group = self.get_group(key)
        if group is not None:
            return group.get_values()
        raise FieldNotFoundError(f"Form {self.name} has no field {key}")

    def set_value(self, key: str, value: Any) -> None:
        """Write a static field. The status key is reserved and left untouched.

        Raises:
            FieldNotFoundError: If the form has no static field ``key``
        """
        if key == RESERVED_STATUS_KEY:
            logger.warning(f"{RESERVED_STATUS_KEY} is reserved and cannot be set")
            return

        field = self._fields.get(key)
        if field is None:
            raise FieldNotFoundError(f"Form {self.name} has no field {key}")
        field.set_value(value)

    def set_dynamic_value(
        self, group_id: str, item_id: str, field_id: str, value: Any
    ) -> Optional[GroupItem]:
        group = self.get_group(group_id)
        if group is None:
            logger.warning(f"Form {self.name} has no group {group_id}")
            return None
        return group.edit_item(item_id, field_id, value)

    def valid(self) -> list[dict[str, Any]]:
        """Rebuild the error list and move to ``error`` or ``pending``."""
        errors: list[dict[str, Any]] = []

        for key, field in self._fields.items():
            if not field.valid():
                errors.append({"key": key, "message": field.error_message})

        for key, group in self._groups.items():
            group_errors = group.validate()["errors"]
            if group_errors:
                errors.append({"key": key, "error": group_errors})

        self.errors = errors
        self.status = FormStatus.ERROR if errors else FormStatus.PENDING
        return self.errors

    def submit(self) -> dict[str, Any] | list[dict[str, Any]]:
        """Validate and snapshot the form.

        Returns:
            The submission record, or the error list when validation fails
            (the previous submission is kept in that case)
        """
        self.valid()

        if self.status == FormStatus.ERROR:
            logger.error(f"Form {self.name} has {len(self.errors)} error(s)")
            return self.errors

        self.submission = self.values
        self.status = FormStatus.SUCCESS
        logger.debug(f"Form {self.name} submitted")
        return copy.deepcopy(self.submission)

    def reset(self) -> None:
        self.status = FormStatus.INIT
        self.submission = {}
        self.errors = []

        for field in self._fields.values():
            field.reset()
        for group in self._groups.values():
            group.reset()

    def on_add(
        self,
        group_id: str,
        values: Optional[Mapping[str, Any]] = None,
        item_id: Optional[str] = None,
    ) -> Optional[str]:
        group = self.get_group(group_id)
        if group is None:
            return None
        return group.add_item(values, item_id=item_id)

    def on_remove(self, group_id: str, item_id: str) -> Optional[dict[str, Any]]:
        group = self.get_group(group_id)
        if group is None:
            return None
        return group.remove_item(item_id)

    def on_edit(
        self, group_id: str, item_id: str, field_id: str, value: Any
    ) -> Optional[GroupItem]:
        group = self.get_group(group_id)
        if group is None:
            return None
        return group.edit_item(item_id, field_id, value)

    def clear_group(self, group_id: str) -> None:
        group = self.get_group(group_id)
        if group is not None:
            group.clear()


def create_form(schema: FormSchema | Mapping[str, Any], name: Optional[str] = None) -> Form:
    """Build a form from a raw or normalized schema."""
    return Form(schema, name=name)
