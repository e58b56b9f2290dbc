from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unittests: fast tests on synthetic data sets")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Automatically mark all tests collected in this directory as 'unit' tests."""
    for item in items:
        item_path = Path(str(item.fspath))
        if "unittests" in item_path.parts:
            item.add_marker("unittests")
