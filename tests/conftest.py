"""
Pytest Configuration and Fixtures
"""

import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from twx_core import config as config_module  # noqa: E402
from twx_core.config import TransformConfig  # noqa: E402


IMPORT_LINE = 'import { twJoin } from "tailwind-merge";'


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep user/system config files and TWX_* variables out of the tests."""
    for name in ("TWX_ATTRIBUTE", "TWX_JOIN_FUNCTION", "TWX_MERGE_LIBRARY", "TWX_STRICT_PARSE", "TWX_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module, "_global_config", None)
    yield


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def transform_config() -> TransformConfig:
    """Default transform settings."""
    return TransformConfig()


@pytest.fixture
def card_source() -> str:
    """A component with one breakpoint-heavy class attribute and one plain one."""
    return (
        'export function Card({ title }: { title: string }) {\n'
        '  return (\n'
        '    <div className="p-4 sm:p-8 text-center">\n'
        '      <h2 className="font-bold">{title}</h2>\n'
        '    </div>\n'
        '  );\n'
        '}\n'
    )


@pytest.fixture
def sample_project(temp_dir: Path, card_source: str) -> Path:
    """Create a small front-end project layout."""
    (temp_dir / "src" / "components").mkdir(parents=True)
    (temp_dir / "node_modules" / "lib").mkdir(parents=True)

    (temp_dir / "src" / "components" / "Card.tsx").write_text(card_source, encoding="utf-8")

    (temp_dir / "src" / "components" / "Nav.jsx").write_text(
        'export const Nav = () => (\n'
        '  <nav className={"flex mobile:hidden desktop:flex"}>\n'
        '    <a className="underline">Home</a>\n'
        '  </nav>\n'
        ');\n',
        encoding="utf-8",
    )

    (temp_dir / "src" / "components" / "Plain.tsx").write_text(
        'export const Plain = () => <p className="text-sm">plain</p>;\n',
        encoding="utf-8",
    )

    (temp_dir / "src" / "styles.css").write_text(".p-4 { padding: 1rem; }\n", encoding="utf-8")

    (temp_dir / "node_modules" / "lib" / "index.jsx").write_text(
        'export const X = () => <div className="p-1 md:p-2" />;\n',
        encoding="utf-8",
    )

    return temp_dir
