# loom/events.py
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Type, TypeVar

from loom.types import SubmeshId

E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class MaterialReady:
    """
    A submesh reached its final material.

    Advisory only; the material is already bound when this is emitted.
    """

    submesh_id: SubmeshId
    material_kind: str  # "simple" or "triplanar"


@dataclass(frozen=True, slots=True)
class SynthesisFailed:
    """Normal-map synthesis failed; the submesh stays on its placeholder."""

    submesh_id: SubmeshId
    reason: str


class EventManager:
    def __init__(self) -> None:
        self._queues: Dict[Type[Any], List[Any]] = defaultdict(list)

    def emit(self, event: Any) -> None:
        self._queues[type(event)].append(event)

    def get(self, event_type: Type[E]) -> List[E]:
        """Drain and return pending events of one type."""
        if event_type in self._queues:
            events = self._queues[event_type]
            self._queues[event_type] = []
            return events
        return []

    def clear_all(self) -> None:
        self._queues.clear()
