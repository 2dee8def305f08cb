"""Consumption sinks for mapped records."""

# Module responsibilities:
# - ListSink retains every surviving record in row order for materializing reads.
# - HandlerSink forwards each record synchronously to a caller handler and keeps nothing.

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Generic, List, TypeVar

from .errors import HandlerError

T = TypeVar("T")


class ConsumptionSink(ABC, Generic[T]):
    """Abstract destination of the records produced by one read call."""

    @abstractmethod
    def accept(self, record: T, row_index: int) -> None:
        """Consume one surviving record."""


class ListSink(ConsumptionSink[T]):
    """Collect records in memory; the caller owns ``records`` once the read returns."""

    def __init__(self) -> None:
        self.records: List[T] = []

    def accept(self, record: T, row_index: int) -> None:
        self.records.append(record)


class HandlerSink(ConsumptionSink[T]):
    """Invoke ``handler(record)`` for each record; the decode loop waits on it."""

    def __init__(self, handler: Callable[[T], None]) -> None:
        self.handler = handler

    def accept(self, record: T, row_index: int) -> None:
        try:
            self.handler(record)
        except Exception as exc:  # noqa: BLE001
            raise HandlerError(f"Record handler failed on row {row_index}: {exc}") from exc
