"""Shared fixtures: decompiler stubs and a configured Flask client."""

import sys
import textwrap
from pathlib import Path
from typing import Callable

import pytest
from flask.testing import FlaskClient

from decompile_api.app import create_app
from decompile_api.config import Config

ECHO_STUB = """
sys.stdout.write("stub output")
"""


@pytest.fixture
def make_stub(tmp_path: Path) -> Callable[..., str]:
    """Write an executable Python script standing in for the decompiler."""

    def _make(body: str, name: str = "decompiler") -> str:
        path = tmp_path / name
        path.write_text(f"#!{sys.executable}\nimport os, signal, sys, time\n" + textwrap.dedent(body))
        path.chmod(0o755)
        return str(path)

    return _make


@pytest.fixture
def record_path(tmp_path: Path) -> Path:
    return tmp_path / "record"


@pytest.fixture
def make_config(make_stub: Callable[..., str]) -> Callable[..., Config]:
    def _make(stub: str = ECHO_STUB, **overrides) -> Config:
        overrides.setdefault("decompiler_path", make_stub(stub))
        overrides.setdefault("timeout", 10.0)
        return Config(**overrides)

    return _make


@pytest.fixture
def make_client(make_config: Callable[..., Config]) -> Callable[..., FlaskClient]:
    def _make(stub: str = ECHO_STUB, **overrides) -> FlaskClient:
        return create_app(make_config(stub, **overrides)).test_client()

    return _make


@pytest.fixture
def client(make_client: Callable[..., FlaskClient]) -> FlaskClient:
    return make_client()
