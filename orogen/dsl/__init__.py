"""YAML specification front-end."""

from .interpreter import (
    STATEMENTS,
    apply_declarations,
    apply_document,
    load_spec_file,
    parse_spec_text,
    parse_statement,
)

__all__ = [
    "STATEMENTS",
    "apply_declarations",
    "apply_document",
    "load_spec_file",
    "parse_spec_text",
    "parse_statement",
]
