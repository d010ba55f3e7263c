"""Core data structures shared across codeskel stages."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class SymbolKind(enum.Enum):
    """The syntactic kind of a symbol."""

    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"
    STRUCT = "struct"
    ENUM = "enum"
    TRAIT = "trait"
    INTERFACE = "interface"


@dataclass(frozen=True)
class Symbol:
    """A function or class-like definition extracted from a source file."""

    name: str
    kind: SymbolKind
    line: int
    exported: bool = False
    extends: str | None = None
    implements: tuple[str, ...] = ()
    is_async: bool = False


@dataclass(frozen=True)
class ParsedFile:
    """Symbols, imports and exports extracted from one source file.

    ``imports`` holds raw import specifiers in source order. ``exports`` holds
    raw export statements; a wildcard re-export is written ``* from <specifier>``.
    """

    path: str
    language: str
    functions: tuple[Symbol, ...] = ()
    classes: tuple[Symbol, ...] = ()
    imports: tuple[str, ...] = ()
    exports: tuple[str, ...] = ()
    has_tests: bool = False

    @property
    def export_count(self) -> int:
        """Exported functions and classes plus explicit export statements."""
        return (
            sum(1 for f in self.functions if f.exported)
            + sum(1 for c in self.classes if c.exported)
            + len(self.exports)
        )

    @property
    def symbol_count(self) -> int:
        return len(self.functions) + len(self.classes)


class Role(enum.Enum):
    """Coarse per-file purpose tag used to bias importance."""

    ENTRY = "entry"
    CONFIG = "config"
    TYPES = "types"
    TEST = "test"
    UTIL = "util"
    DOC = "doc"
    CORE = "core"


class Layer(enum.Enum):
    """Architectural bucket inferred from directory naming."""

    UI = "ui"
    API = "api"
    DOMAIN = "domain"
    INFRA = "infra"
    UTIL = "util"
    CONFIG = "config"
    TEST = "test"
    OTHER = "other"


@dataclass(frozen=True)
class FileIndexEntry:
    """A ranked file: importance in [0, 1] and its role."""

    path: str
    importance: float
    role: Role
    imports: tuple[str, ...] | None = None
    export_count: int = 0
    function_count: int = 0
