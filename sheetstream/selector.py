"""Sheet selection with early termination."""

from __future__ import annotations

from typing import Iterable, Optional, TypeVar

from .utils.log import get_logger

logger = get_logger("selector")

S = TypeVar("S")


def select_sheet(sheets: Iterable[S], target: int) -> Optional[S]:
    """Walk ``sheets`` in document order and return the one at ``target``.

    Iteration stops as soon as the target is reached, so later sheets are never
    touched. Returns ``None`` when the workbook has fewer sheets than ``target + 1``.
    """

    for index, sheet in enumerate(sheets):
        if index > target:
            break
        if index == target:
            return sheet
        logger.debug("Skipping sheet", extra={"index": index, "target": target})
    return None
