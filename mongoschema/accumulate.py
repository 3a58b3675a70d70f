"""Fold a stream of records into a single inferred type."""

from __future__ import annotations

import logging
from itertools import islice
from typing import Any, Callable, Iterable, Optional

from .classify import ScalarRegistry, classify
from .lattice import Struct, Type, merge

ProgressCallback = Callable[[int], None]

logger = logging.getLogger(__name__)


class TypeAccumulator:
    """Running type for one target, built one record at a time.

    Records must be folded sequentially: the order in which alternatives are
    first seen is the order they are rendered in.
    """

    def __init__(self, scalars: Optional[ScalarRegistry] = None) -> None:
        self.scalars = scalars
        self.count = 0
        self._current: Type = Struct()

    def add(self, record: Any) -> None:
        self._current = merge(self._current, classify(record, self.scalars))
        self.count += 1

    def extend(self, records: Iterable[Any]) -> None:
        for record in records:
            self.add(record)

    @property
    def result(self) -> Type:
        return self._current


def accumulate(
    records: Iterable[Any],
    *,
    limit: Optional[int] = None,
    scalars: Optional[ScalarRegistry] = None,
    progress_callback: Optional[ProgressCallback] = None,
    progress_interval: int = 1000,
) -> Type:
    """Infer the type covering ``records``.

    ``limit`` caps the number of records consumed; ``None`` or ``0`` means no
    cap. The supply may end early, no total count is assumed.
    """

    if progress_interval <= 0:
        raise ValueError("progress interval must be positive")

    if limit:
        records = islice(records, limit)

    accumulator = TypeAccumulator(scalars)
    pending = 0
    for record in records:
        accumulator.add(record)
        pending += 1
        if progress_callback is not None and pending >= progress_interval:
            progress_callback(pending)
            pending = 0

    if progress_callback is not None and pending:
        progress_callback(pending)

    logger.debug("Accumulated %d records", accumulator.count)
    return accumulator.result
