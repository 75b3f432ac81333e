from __future__ import annotations

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

ROOT = Path(__file__).resolve().parents[1]


def test_pyproject_installs_existing_modules_only() -> None:
    config = tomllib.loads((ROOT / "pyproject.toml").read_text(encoding="utf-8"))

    assert "readme" not in config["project"]
    for module in config["tool"]["setuptools"]["py-modules"]:
        assert (ROOT / f"{module}.py").exists(), module
