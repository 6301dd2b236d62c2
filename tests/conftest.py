# tests/conftest.py
"""
Shared fixtures: a bare diagram manager, one with adaptive label
positioning switched on, and a reference shape.
"""

from __future__ import annotations

import pytest

from adaptive_labels import Shape
from adaptive_labels.editor import DiagramManager, create_editor


@pytest.fixture
def manager() -> DiagramManager:
    m = DiagramManager()
    m.new_diagram("test")
    return m


@pytest.fixture
def editor() -> DiagramManager:
    m = create_editor()
    m.new_diagram("test")
    return m


@pytest.fixture
def shape() -> Shape:
    # top=100, right=200, bottom=180, left=100, mid=(150, 140)
    return Shape(id="task", x=100, y=100, width=100, height=80)
