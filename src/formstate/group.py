"""Capacity-bounded, ordered collection of field sets."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .consts import ITEM_ID_KEY, UNBOUNDED
from .errors import FieldNotFoundError, ItemNotFoundError
from .field import Field
from .schema import GroupSchema

logger = logging.getLogger(__name__)


@dataclass
class GroupItem:
    item_id: str
    fields: dict[str, Field]

    def values(self) -> dict[str, Any]:
        """Value-only snapshot of the item, including its id."""
        snapshot: dict[str, Any] = {ITEM_ID_KEY: self.item_id}
        for field_id, field in self.fields.items():
            snapshot[field_id] = copy.deepcopy(field.value)
        return snapshot


class Group:
    """Dynamic items built from one shared item schema.

    Auto-assigned item ids come from a counter that only grows, so an id is
    never handed out twice during the group's lifetime, even after the
    item holding it was removed or the group was cleared.
    """

    def __init__(self, schema: GroupSchema):
        self.id = schema.id
        self.limit = schema.limit
        self.items: list[GroupItem] = []
        self._item_schema = list(schema.item_fields)
        self._counter = 0
        self._issued_ids: set[str] = set()
        self._on_add = schema.on_add
        self._on_remove = schema.on_remove
        self._on_edit = schema.on_edit

    def __repr__(self) -> str:
        return f"Group(id={self.id!r}, size={self.size}, limit={self.limit})"

    def __len__(self) -> int:
        return len(self.items)

    @property
    def size(self) -> int:
        return len(self.items)

    @property
    def is_full(self) -> bool:
        return self.limit != UNBOUNDED and self.size >= self.limit

    def get_item(self, item_id: str) -> Optional[GroupItem]:
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None

    def _require_item(self, item_id: str) -> GroupItem:
        item = self.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(f"Item {item_id} not found in group {self.id}")
        return item

    def _next_item_id(self) -> str:
        while True:
            item_id = f"{self.id}-{self._counter}"
            self._counter += 1
            if item_id not in self._issued_ids:
                return item_id

    def add_item(
        self,
        values: Optional[Mapping[str, Any]] = None,
        item_id: Optional[str] = None,
        *,
        is_init: bool = False,
    ) -> Optional[str]:
        """Append an item built from the item schema.

        Args:
            values: Per-field values, used as both default and initial value
            item_id: Caller-supplied id; generated when omitted
            is_init: Seeding from the schema; suppresses the on_add callback

        Returns:
            The new item id, or None when the group is full or the id was
            already used
        """
        if self.is_full:
            logger.warning(f"Group {self.id} reached its limit ({self.limit}), item rejected")
            return None

        if item_id is None:
            item_id = self._next_item_id()
        elif item_id in self._issued_ids:
            logger.warning(f"Item id {item_id} was already used in group {self.id}, item rejected")
            return None

        values = values or {}
        unknown = set(values) - {field.id for field in self._item_schema} - {ITEM_ID_KEY}
        if unknown:
            logger.debug(f"Ignoring unknown fields for group {self.id}: {sorted(unknown)}")

        fields = {}
        for field_schema in self._item_schema:
            field = Field(field_schema.id, default=values.get(field_schema.id, ""))
            field.init(field_schema)
            fields[field.id] = field

        item = GroupItem(item_id=item_id, fields=fields)
        self.items.append(item)
        self._issued_ids.add(item_id)
        logger.debug(f"Added item {item_id} to group {self.id} (size={self.size})")

        if not is_init and self._on_add is not None:
            self._on_add(item.values())

        return item_id

    def remove_item(self, item_id: str) -> Optional[dict[str, Any]]:
        """Remove an item and return its value snapshot.

        Returns None when the group is empty.

        Raises:
            ItemNotFoundError: If the group is not empty and has no such item
        """
        if not self.items:
            logger.debug(f"Group {self.id} is empty, nothing to remove")
            return None

        item = self._require_item(item_id)
        snapshot = item.values()
        self.items.remove(item)
        logger.debug(f"Removed item {item_id} from group {self.id} (size={self.size})")

        if self._on_remove is not None:
            self._on_remove(snapshot)

        return snapshot

    def edit_item(self, item_id: str, field_id: str, value: Any) -> GroupItem:
        """Set one field of one item.

        Raises:
            ItemNotFoundError: If the item does not exist
            FieldNotFoundError: If the item schema has no such field
        """
        item = self._require_item(item_id)
        field = item.fields.get(field_id)
        if field is None:
            raise FieldNotFoundError(f"Field {field_id} not found in group {self.id}")

        field.set_value(value)

        if self._on_edit is not None:
            self._on_edit(item.values())

        return item

    def get_values(self) -> list[dict[str, Any]]:
        return [item.values() for item in self.items]

    def validate(self) -> dict[str, Any]:
        errors = []
        for item in self.items:
            for field in item.fields.values():
                if not field.valid():
                    errors.append(
                        {
                            "key": field.id,
                            "message": field.error_message,
                            ITEM_ID_KEY: item.item_id,
                        }
                    )
        return {"group_id": self.id, "errors": errors}

    def clear(self) -> None:
        self.items = []

    def reset(self) -> None:
        for item in self.items:
            for field in item.fields.values():
                field.reset()
