"""Drive inference across the configured collections."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Iterable, Optional, Protocol

from .accumulate import accumulate
from .classify import ScalarRegistry
from .config import CollectionConfig, GeneratorConfig
from .errors import MongoSchemaError
from .lattice import Type
from .render import Declaration, render_declaration

logger = logging.getLogger(__name__)

TargetProgressCallback = Callable[[str, int], None]


class RecordSupplier(Protocol):
    def iter_records(self, collection: str, limit: Optional[int] = None) -> Iterable[Any]:
        ...


@dataclass(slots=True)
class TargetFailure:
    collection: str
    struct: str
    error: MongoSchemaError

    def __str__(self) -> str:
        return f"{self.collection} ({self.struct}): {self.error}"


@dataclass(slots=True)
class GenerationResult:
    declarations: list[Declaration] = field(default_factory=list)
    failures: list[TargetFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def infer_collection(
    collection: CollectionConfig,
    supplier: RecordSupplier,
    *,
    limit: Optional[int] = None,
    scalars: Optional[ScalarRegistry] = None,
    progress_callback: Optional[TargetProgressCallback] = None,
) -> Type:
    """Accumulate the inferred type of one collection."""

    callback = None
    if progress_callback is not None:
        callback = partial(progress_callback, collection.name)

    records = supplier.iter_records(collection.name, limit or None)
    return accumulate(records, limit=limit, scalars=scalars, progress_callback=callback)


def generate_declarations(
    config: GeneratorConfig,
    supplier: RecordSupplier,
    *,
    keep_going: bool = False,
    progress_callback: Optional[TargetProgressCallback] = None,
) -> GenerationResult:
    """Infer and render one declaration per configured collection.

    Without ``keep_going`` the first failure aborts the run. With it, failing
    collections are recorded in :attr:`GenerationResult.failures` and the
    remaining collections still run.
    """

    options = config.render_options()
    scalars = config.scalar_registry()
    result = GenerationResult()

    for collection in config.collections:
        logger.info("Inferring %s from collection %s", collection.struct, collection.name)
        try:
            inferred = infer_collection(
                collection,
                supplier,
                limit=config.limit or None,
                scalars=scalars,
                progress_callback=progress_callback,
            )
        except MongoSchemaError as error:
            if not keep_going:
                raise
            logger.error("Skipping collection %s: %s", collection.name, error)
            result.failures.append(TargetFailure(collection.name, collection.struct, error))
            continue
        result.declarations.append(render_declaration(collection.struct, inferred, options))

    return result
