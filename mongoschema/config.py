"""YAML configuration for a schema generation run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from jsonschema import ValidationError, validate

from .classify import ScalarRegistry
from .errors import ConfigError
from .naming import make_field_name
from .render import RenderOptions
from .schemas import CONFIG_SCHEMA

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CollectionConfig:
    """One named target: a collection and the declaration name it produces."""

    name: str
    struct: str = ""

    def __post_init__(self) -> None:
        if not self.struct:
            self.struct = make_field_name(self.name)
        if not self.struct:
            raise ConfigError(f"cannot derive a struct name from {self.name!r}", path="collections")


@dataclass(slots=True)
class GeneratorConfig:
    """Settings for a generation run, mirroring the YAML keys."""

    url: str = ""
    db: str = ""
    limit: int = 0
    comments: bool = False
    ignored_fields: list[str] = field(default_factory=list)
    collections: list[CollectionConfig] = field(default_factory=list)
    scalar_types: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "GeneratorConfig":
        """Validate a decoded configuration mapping and build the config."""

        if data is None:
            raise ConfigError("configuration is empty")
        try:
            validate(instance=data, schema=CONFIG_SCHEMA)
        except ValidationError as exc:
            location = ".".join(str(part) for part in exc.absolute_path) or None
            raise ConfigError(exc.message, path=location) from exc

        return cls(
            url=data.get("url", ""),
            db=data.get("db", ""),
            limit=data.get("limit") or 0,
            comments=data.get("comments", False),
            ignored_fields=list(data.get("ignored_fields", [])),
            collections=[
                CollectionConfig(name=entry["name"], struct=entry.get("struct", ""))
                for entry in data.get("collections", [])
            ],
            scalar_types=dict(data.get("scalar_types", {})),
        )

    def render_options(self) -> RenderOptions:
        return RenderOptions(ignored_fields=frozenset(self.ignored_fields), comments=self.comments)

    def scalar_registry(self) -> ScalarRegistry:
        """Default scalar registry extended with the configured ``scalar_types``."""

        scalars = ScalarRegistry()
        for dotted_path, kind in self.scalar_types.items():
            scalars.register_entrypoint(dotted_path, kind)
        return scalars


def load_config(path: Path) -> GeneratorConfig:
    """Read and validate a YAML configuration file."""

    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read configuration: {exc}", path=str(path)) from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}", path=str(path)) from exc

    if data is not None and not isinstance(data, dict):
        raise ConfigError("configuration must be a mapping", path=str(path))

    config = GeneratorConfig.from_mapping(data)
    logger.debug("Loaded configuration with %d collections from %s", len(config.collections), path)
    return config
