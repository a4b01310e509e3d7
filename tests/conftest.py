"""Shared fixtures: an offscreen QApplication and an isolated editing session."""
from __future__ import annotations

import os
import sys

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from PyQt6.QtCore import QPointF, Qt
from PyQt6.QtTest import QTest
from PyQt6.QtWidgets import QApplication, QGraphicsView

from settings import SettingsManager


@pytest.fixture(scope="session")
def qapp():
    """Provide a single QApplication for the entire test session."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture()
def settings(tmp_path):
    """Settings stored under the test's temp dir (defaults, never the user's file)."""
    return SettingsManager(settings_dir=tmp_path / "config")


@pytest.fixture()
def ctx(qapp, settings):
    """Editing session on an 800x600 canvas without background."""
    from session import EditorContext

    session = EditorContext(settings=settings)
    yield session
    session.scale.stop_continuous()
    session.key_capture.cancel()
    session.registry.clear_all()


@pytest.fixture()
def add(ctx):
    """Create a node from a record dict through the registry."""
    def _add(record):
        node = ctx.registry.create_node(record)
        assert node is not None
        return node
    return _add


@pytest.fixture()
def view(ctx):
    """A shown view on the session scene, scene origin at the viewport's top-left."""
    view = QGraphicsView(ctx.scene)
    view.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
    view.resize(1000, 800)
    view.show()
    QTest.qWaitForWindowExposed(view)
    yield view
    view.close()


@pytest.fixture()
def click(view):
    """Click the view's viewport at a scene position."""
    def _click(button, x, y):
        point = view.mapFromScene(QPointF(x, y))
        QTest.mouseClick(view.viewport(), button, Qt.KeyboardModifier.NoModifier, point)
    return _click
