"""Rendering of inferred types into Go declarations."""

from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .lattice import Kind, Mixed, NilType, Primitive, Sequence, Struct, Type
from .naming import is_valid_field_name, make_field_name

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

PRIMITIVE_NAMES: dict[Kind, str] = {
    Kind.BINARY: "bson.Binary",
    Kind.BOOL: "bool",
    Kind.DOUBLE: "float64",
    Kind.INT32: "int32",
    Kind.INT64: "int64",
    Kind.OBJECT_ID: "bson.ObjectId",
    Kind.STRING: "string",
    Kind.TIMESTAMP: "time.Time",
    Kind.DBREF: "mgo.DBRef",
}

PRIMITIVE_IMPORTS: dict[Kind, str] = {
    Kind.BINARY: "gopkg.in/mgo.v2/bson",
    Kind.OBJECT_ID: "gopkg.in/mgo.v2/bson",
    Kind.TIMESTAMP: "time",
    Kind.DBREF: "gopkg.in/mgo.v2",
}

NIL_NAME = "nil"
ANY_NAME = "interface{}"


@dataclass(slots=True)
class RenderOptions:
    """Rendering switches threaded through every render call."""

    ignored_fields: frozenset[str] = frozenset()
    comments: bool = False

    def __post_init__(self) -> None:
        self.ignored_fields = frozenset(self.ignored_fields)


@dataclass(slots=True)
class Declaration:
    """One rendered target: ``<name> <type>`` plus the imports it needs."""

    name: str
    text: str
    imports: frozenset[str] = field(default_factory=frozenset)

    def __str__(self) -> str:
        return self.text


def render(value: Type, options: RenderOptions | None = None) -> str:
    """Render an inferred type as Go type text."""

    options = options or RenderOptions()

    if isinstance(value, NilType):
        return NIL_NAME
    if isinstance(value, Primitive):
        return PRIMITIVE_NAMES[value.kind]
    if isinstance(value, Sequence):
        return f"[]{render(value.element, options)}"
    if isinstance(value, Struct):
        return _render_struct(value, options)
    if isinstance(value, Mixed):
        if not options.comments:
            return ANY_NAME
        # block comments do not nest, so alternatives are annotated without them
        plain = replace(options, comments=False)
        rendered = ", ".join(render(alternative, plain) for alternative in value.alternatives)
        return f"{ANY_NAME} /* {rendered} */"
    raise TypeError(f"unknown inferred type: {value!r}")


def field_tag(name: str) -> str:
    """Struct tag carrying the source field name for round-tripping."""

    return f'`bson:"{name},omitempty" json:"{name},omitempty"`'


def render_declaration(name: str, value: Type, options: RenderOptions | None = None) -> Declaration:
    """Render a named target declaration."""

    options = options or RenderOptions()
    return Declaration(
        name=name,
        text=f"{name} {render(value, options)}",
        imports=frozenset(referenced_imports(value, options)),
    )


def referenced_imports(value: Type, options: RenderOptions | None = None) -> set[str]:
    """Return the Go import paths needed by the rendered code of ``value``.

    Mixed alternatives only appear inside comments, so they never require an
    import.
    """

    options = options or RenderOptions()
    imports: set[str] = set()
    pending = [value]
    while pending:
        current = pending.pop()
        if isinstance(current, Primitive):
            path = PRIMITIVE_IMPORTS.get(current.kind)
            if path:
                imports.add(path)
        elif isinstance(current, Sequence):
            pending.append(current.element)
        elif isinstance(current, Struct):
            pending.extend(
                field_type
                for name, field_type in current.fields.items()
                if name not in options.ignored_fields and is_valid_field_name(name)
            )
    return imports


def render_source(declarations: Iterable[Declaration], package: str) -> str:
    """Render a complete Go source file holding ``declarations``."""

    declarations = list(declarations)
    imports = sorted(set().union(*(declaration.imports for declaration in declarations)))
    env = Environment(
        loader=FileSystemLoader(_TEMPLATE_DIR),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    template = env.get_template("source.go.j2")
    return template.render(package=package, imports=imports, declarations=declarations)


def _render_struct(value: Struct, options: RenderOptions) -> str:
    lines = ["struct {"]
    for name in sorted(value.fields):
        if name in options.ignored_fields:
            continue
        if not is_valid_field_name(name):
            logger.warning("Skipping invalid field name %r", name)
            if options.comments:
                lines.append(f"\t// skipping invalid field name {name}")
            continue
        rendered = render(value.fields[name], options)
        line = f"{make_field_name(name)} {rendered} {field_tag(name)}"
        lines.append(textwrap.indent(line, "\t"))
    lines.append("}")
    return "\n".join(lines)
