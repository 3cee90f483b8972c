"""Tests for entrypoint helpers."""

import logging

import pytest

from server import log_level


class TestLogLevel:
    @pytest.mark.parametrize(("name", "level"), [("DEBUG", logging.DEBUG), ("WARNING", logging.WARNING)])
    def test_known_names(self, name: str, level: int) -> None:
        assert log_level(name) == level

    @pytest.mark.parametrize("name", ["BASICCONFIG", "basicConfig", "LOUD", ""])
    def test_unknown_names_fall_back_to_info(self, name: str) -> None:
        assert log_level(name) == logging.INFO
