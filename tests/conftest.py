"""Pytest configuration for QRcation."""

from __future__ import annotations

import os

import pytest


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    del config
    if os.environ.get("QRCATION_CI") != "1":
        return
    skip_tui = pytest.mark.skip(reason="Skipping Textual app tests in CI.")
    for item in items:
        if "tui" in item.keywords:
            item.add_marker(skip_tui)
