"""Everything collected below tests/unit carries the ``unit`` marker."""

from pathlib import Path

import pytest


UNIT_ROOT = Path(__file__).parent


def pytest_collection_modifyitems(config, items):
    for item in items:
        if item.path.is_relative_to(UNIT_ROOT):
            item.add_marker(pytest.mark.unit)
