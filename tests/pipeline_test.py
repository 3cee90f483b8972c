"""Tests for the validate, stage, invoke pipeline."""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

import pytest

from decompile_api import pipeline
from decompile_api.config import Config
from decompile_api.errors import EmptyPayload, MalformedBytecode, PayloadTooLarge
from decompile_api.pipeline import decompile

HEX_STUB = """
with open(sys.argv[1], "rb") as f:
    sys.stdout.write(f.read().hex())
"""


@pytest.fixture
def no_side_effects(monkeypatch: pytest.MonkeyPatch) -> None:
    def _forbidden(*args, **kwargs):
        raise AssertionError("pipeline must not stage or spawn")

    monkeypatch.setattr(pipeline, "staged_file", _forbidden)
    monkeypatch.setattr(pipeline, "run_decompiler", _forbidden)


class TestRejectionsHaveNoSideEffects:
    def test_empty_payload(self, no_side_effects: None) -> None:
        with pytest.raises(EmptyPayload):
            decompile(b"", None, Config())

    def test_oversized_payload(self, no_side_effects: None) -> None:
        with pytest.raises(PayloadTooLarge):
            decompile(b"x" * 9, None, Config(max_file_size=8))

    @pytest.mark.parametrize("size", [1, 2, 3])
    def test_short_payload(self, no_side_effects: None, size: int) -> None:
        with pytest.raises(MalformedBytecode):
            decompile(b"\xff" * size, None, Config())


class TestDecompile:
    def test_staged_file_removed_after_unexpected_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen = []

        def _explode(executable, path, flag, **kwargs):
            seen.append(path)
            assert os.path.exists(path)
            raise RuntimeError("decompiler wrapper crashed")

        monkeypatch.setattr(pipeline, "run_decompiler", _explode)
        with pytest.raises(RuntimeError):
            decompile(b"\x00\x01\x02\x03", None, Config())
        assert len(seen) == 1
        assert not os.path.exists(seen[0])

    def test_concurrent_requests_see_only_their_own_payload(
        self, make_config: Callable[..., Config]
    ) -> None:
        config = make_config(HEX_STUB)
        payloads = [i.to_bytes(4, "big") + os.urandom(8) for i in range(24)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda p: decompile(p, "application/octet-stream", config), payloads))
        assert results == [p.hex() for p in payloads]
