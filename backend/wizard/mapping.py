# backend/wizard/mapping.py
# Drag-and-drop field mapping

from enum import Enum
from typing import List, Optional

from store.models import FieldMapping


class Side(str, Enum):
    SOURCE = "source"
    TARGET = "target"


class FieldMapper:
    """
    Pairs source fields with target fields

    Dropping a field pairs it with the first unmapped field on the other
    side. A field already mapped on its side, or a drop with no free partner,
    changes nothing. Each field appears at most once per side.
    """

    def __init__(self, source_fields: List[str], target_fields: List[str]):
        self.source_fields = list(source_fields)
        self.target_fields = list(target_fields)
        self.mappings: List[FieldMapping] = []

    def _mapped(self, side: Side) -> set:
        if side == Side.SOURCE:
            return {m.source for m in self.mappings}
        return {m.target for m in self.mappings}

    def _fields(self, side: Side) -> List[str]:
        return self.source_fields if side == Side.SOURCE else self.target_fields

    def unmapped(self, side: Side) -> List[str]:
        taken = self._mapped(side)
        return [f for f in self._fields(side) if f not in taken]

    def drop(self, field_id: str, side: Side) -> Optional[FieldMapping]:
        """Returns the new mapping, or None for a no-op drop"""
        side = Side(side)
        if field_id not in self._fields(side) or field_id in self._mapped(side):
            return None

        other = Side.TARGET if side == Side.SOURCE else Side.SOURCE
        free = self.unmapped(other)
        if not free:
            return None

        if side == Side.SOURCE:
            mapping = FieldMapping(source=field_id, target=free[0])
        else:
            mapping = FieldMapping(source=free[0], target=field_id)
        self.mappings.append(mapping)
        return mapping

    def remove(self, source_id: str) -> bool:
        before = len(self.mappings)
        self.mappings = [m for m in self.mappings if m.source != source_id]
        return len(self.mappings) != before
