"""Shared test fixtures for codeskel."""

from __future__ import annotations

from pathlib import Path

import pytest

from codeskel.models import ParsedFile, Symbol, SymbolKind


def _fn(name: str, line: int = 1, *, exported: bool = True) -> Symbol:
    return Symbol(name=name, kind=SymbolKind.FUNCTION, line=line, exported=exported)


def _cls(
    name: str,
    line: int = 1,
    *,
    extends: str | None = None,
    implements: tuple[str, ...] = (),
    kind: SymbolKind = SymbolKind.CLASS,
) -> Symbol:
    return Symbol(
        name=name,
        kind=kind,
        line=line,
        exported=True,
        extends=extends,
        implements=implements,
    )


@pytest.fixture()
def scenario_files() -> dict[str, ParsedFile | None]:
    """Index and test file both importing a util module."""
    return {
        "src/index.ts": ParsedFile(
            path="src/index.ts",
            language="typescript",
            functions=(_fn("bootstrap"),),
            imports=("./util",),
        ),
        "src/util.ts": ParsedFile(
            path="src/util.ts",
            language="typescript",
            functions=(_fn("formatDate"), _fn("parseDate", 5)),
        ),
        "src/util.test.ts": ParsedFile(
            path="src/util.test.ts",
            language="typescript",
            functions=(_fn("testFormatDate", exported=False),),
            imports=("./util",),
            has_tests=True,
        ),
    }


@pytest.fixture()
def layered_files() -> dict[str, ParsedFile | None]:
    """A small layered project with a hub, inheritance and a re-export.

    ``models/base.ts`` is imported by three files and so is a hub.
    """
    return {
        "index.ts": ParsedFile(
            path="index.ts",
            language="typescript",
            imports=("./models/base", "./api/routes", "react"),
            exports=("* from ./models/user",),
        ),
        "models/base.ts": ParsedFile(
            path="models/base.ts",
            language="typescript",
            classes=(_cls("BaseModel"),),
        ),
        "models/user.ts": ParsedFile(
            path="models/user.ts",
            language="typescript",
            classes=(
                _cls(
                    "UserAccount",
                    3,
                    extends="BaseModel",
                    implements=("Serializable", "EventEmitter"),
                ),
            ),
            functions=(_fn("loadUser", 20),),
            imports=("./base", "../types/serializable", "events"),
        ),
        "types/serializable.ts": ParsedFile(
            path="types/serializable.ts",
            language="typescript",
            classes=(_cls("Serializable", kind=SymbolKind.INTERFACE),),
        ),
        "api/routes.ts": ParsedFile(
            path="api/routes.ts",
            language="typescript",
            functions=(_fn("registerRoutes"), _fn("handleUser", 10)),
            imports=("../models/user", "../models/base", "../lib/http", "./missing"),
        ),
        "lib/http.ts": ParsedFile(
            path="lib/http.ts",
            language="typescript",
            functions=(_fn("sendJson"),),
        ),
        "broken.ts": None,
        "node_modules/pkg/index.js": ParsedFile(
            path="node_modules/pkg/index.js",
            language="javascript",
            imports=("../../models/base",),
        ),
    }


@pytest.fixture()
def sample_repo(tmp_path: Path) -> Path:
    """Create a small Python package with relative imports and a manifest."""
    pkg = tmp_path / "shop"
    pkg.mkdir()
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "shop"\n', encoding="utf-8"
    )
    (pkg / "__init__.py").write_text(
        "from .models import Product\n", encoding="utf-8"
    )
    (pkg / "models.py").write_text(
        '''\
class Product:
    """A product."""

    def price_with_tax(self, rate: float) -> float:
        return self.price * (1 + rate)


class DigitalProduct(Product):
    pass
''',
        encoding="utf-8",
    )
    (pkg / "pricing.py").write_text(
        """\
from .models import Product


def apply_discount(product: Product, pct: float) -> float:
    return product.price_with_tax(0.2) * (1 - pct)
""",
        encoding="utf-8",
    )
    (pkg / "cart.py").write_text(
        """\
from . import models
from .pricing import apply_discount


async def checkout(items):
    return [apply_discount(i, 0.1) for i in items]
""",
        encoding="utf-8",
    )
    return tmp_path
