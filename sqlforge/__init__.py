"""Model code generation from schema descriptions via Jinja2 templates, with column-set inference, naming aliases and runtime helpers."""

__version__ = "0.1.0"

__all__ = [
    "aliases",
    "columns",
    "config",
    "context",
    "database",
    "errors",
    "generator",
    "naming",
    "output",
    "schema",
    "templates",
]