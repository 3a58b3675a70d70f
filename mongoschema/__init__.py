"""Core package for the MongoDB schema generator."""

__all__ = [
    "accumulate",
    "classify",
    "cli",
    "config",
    "errors",
    "generate",
    "io",
    "lattice",
    "mongo",
    "naming",
    "render",
    "schemas",
]
