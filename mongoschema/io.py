"""Record supplier for local JSON, JSONL and MongoDB Extended JSON files."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, TextIO

from bson import json_util
from bson.errors import BSONError

from .errors import SupplyError

logger = logging.getLogger(__name__)

FORMATS = frozenset({"json_array", "jsonl", "json_object"})


@dataclass(slots=True)
class ChunkingConfig:
    """Configuration for JSON streaming chunk size."""

    size: int = 1000
    format: str | None = None
    max_records: int | None = None

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError("chunk size must be positive")
        if self.format is not None and self.format not in FORMATS:
            raise ValueError("format must be 'json_array', 'json_object', 'jsonl', or None")
        if self.max_records is not None and self.max_records < 0:
            raise ValueError("max_records must not be negative")


class JSONStream:
    """Stream records from a JSON or JSONL file in fixed-size chunks.

    Values are decoded as MongoDB Extended JSON, so ``{"$oid": ...}``,
    ``{"$date": ...}`` and friends arrive as their ``bson`` types.
    """

    def __init__(self, path: Path, config: ChunkingConfig | None = None) -> None:
        self.path = path
        self.config = config or ChunkingConfig()

    def iter_chunks(self) -> Iterator[list[dict[str, Any]]]:
        """Yield successive chunks of records.

        Supports newline-delimited JSON (JSONL) as well as standard JSON arrays.
        JSON arrays are parsed one element at a time, avoiding full
        materialisation of the file.
        """

        if not self.path.exists():
            raise SupplyError(f"source file not found: {self.path}")

        try:
            detected_format = self._detect_format()
            logger.debug("Reading %s as %s", self.path, detected_format)
            if detected_format == "jsonl":
                yield from self._iter_jsonl()
            elif detected_format == "json_object":
                yield from self._iter_json_object()
            else:
                yield from self._iter_json_array()
        except (ValueError, BSONError) as exc:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            raise SupplyError(f"cannot decode {self.path}: {exc}") from exc

    def iter_records(self) -> Iterator[dict[str, Any]]:
        """Yield records one by one, honouring ``max_records``."""

        for chunk in self.iter_chunks():
            yield from chunk

    def open(self) -> TextIO:
        """Open the underlying file."""

        return self.path.open("r", encoding="utf-8")

    def __iter__(self) -> Iterable[dict[str, Any]]:
        return self.iter_records()

    def _iter_jsonl(self) -> Iterator[list[dict[str, Any]]]:
        record_count = 0
        with self.open() as handle:
            chunk: list[dict[str, Any]] = []
            for line_number, line in enumerate(handle, start=1):
                if self._should_stop(record_count):
                    break
                line = line.strip()
                if not line:
                    continue
                obj = json.loads(line, object_hook=json_util.object_hook)
                if not isinstance(obj, dict):
                    raise SupplyError(f"{self.path}:{line_number}: JSONL record is not an object")
                chunk.append(obj)
                record_count += 1
                if len(chunk) >= self.config.size:
                    yield chunk
                    chunk = []
            if chunk:
                yield chunk

    def _iter_json_object(self) -> Iterator[list[dict[str, Any]]]:
        if self._should_stop(0):
            return
        with self.open() as handle:
            data = json.load(handle, object_hook=json_util.object_hook)
        if not isinstance(data, dict):
            raise SupplyError(f"{self.path}: expected a JSON object at root")
        yield [data]

    def _detect_format(self) -> str:
        if self.config.format:
            return self.config.format

        suffix = self.path.suffix.lower()
        if suffix in {".jsonl", ".ndjson"}:
            return "jsonl"

        with self.open() as handle:
            while True:
                char = handle.read(1)
                if not char:
                    break
                if char.isspace():
                    continue
                if char == "[":
                    return "json_array"
                if char == "{":
                    return "json_object"
                break
        raise SupplyError(f"unable to detect JSON format of {self.path}")

    def _iter_json_array(self) -> Iterator[list[dict[str, Any]]]:
        with self.open() as handle:
            decoder = json.JSONDecoder(object_hook=json_util.object_hook)
            buffer = ""
            chunk: list[dict[str, Any]] = []
            record_count = 0
            in_array = False
            eof = False

            if self._should_stop(record_count):
                return

            while not eof:
                data = handle.read(65536)
                if not data:
                    eof = True
                buffer += data
                idx = 0

                while True:
                    idx = _consume_whitespace(buffer, idx)

                    if not in_array:
                        if idx >= len(buffer):
                            break
                        if buffer[idx] == "[":
                            in_array = True
                            idx += 1
                            continue
                        raise SupplyError(f"{self.path}: expected JSON array start")

                    if idx >= len(buffer):
                        break

                    if buffer[idx] == "]":
                        eof = True
                        idx += 1
                        break

                    try:
                        obj, end = decoder.raw_decode(buffer, idx)
                    except json.JSONDecodeError:
                        if eof:
                            raise
                        # element spans the read boundary, wait for more data
                        break
                    if not isinstance(obj, dict):
                        raise SupplyError(f"{self.path}: array elements must be JSON objects")
                    chunk.append(obj)
                    record_count += 1
                    idx = _consume_whitespace(buffer, end)
                    if idx < len(buffer) and buffer[idx] == ",":
                        idx += 1

                    if len(chunk) >= self.config.size:
                        yield chunk
                        chunk = []

                    if self._should_stop(record_count):
                        if chunk:
                            yield chunk
                        return

                buffer = buffer[idx:]

            if chunk:
                yield chunk

    def _should_stop(self, record_count: int) -> bool:
        return self.config.max_records is not None and record_count >= self.config.max_records


def _consume_whitespace(buffer: str, idx: int) -> int:
    while idx < len(buffer) and buffer[idx].isspace():
        idx += 1
    return idx
