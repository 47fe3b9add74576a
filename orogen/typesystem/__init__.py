"""Type system: registries of type definitions and the typekits exporting them."""

from .registry import (
    FieldDefinition,
    TypeDefinition,
    TypeRegistry,
    normalize_typename,
    cxx_typename,
    namespace_of,
)
from .typekit import (
    BASE_TYPEKIT_NAME,
    HeaderImporter,
    ImportedTypekit,
    NullHeaderImporter,
    Typekit,
    format_typelist,
    load_base_typekit,
    parse_typelist,
)

__all__ = [
    "FieldDefinition",
    "TypeDefinition",
    "TypeRegistry",
    "normalize_typename",
    "cxx_typename",
    "namespace_of",
    "BASE_TYPEKIT_NAME",
    "HeaderImporter",
    "ImportedTypekit",
    "NullHeaderImporter",
    "Typekit",
    "format_typelist",
    "load_base_typekit",
    "parse_typelist",
]
