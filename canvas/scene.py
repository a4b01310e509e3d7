"""
canvas/scene.py

QGraphicsScene holding the canvas, the optional background image and the
mapping nodes.  Routes key-capture input and canvas-level gestures (empty
click, right-click, palette drops) to the session through callbacks.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from PyQt6.QtCore import Qt, QRectF, QTimer
from PyQt6.QtGui import QPixmap
from PyQt6.QtWidgets import QGraphicsPixmapItem, QGraphicsScene

from canvas.frame import ReferenceFrame, fit_background
from debug_trace import trace
from keys import key_from_event, key_from_mouse_button
from settings import SettingsManager, get_settings

log = logging.getLogger(__name__)

MAPPING_MIME_TYPE = "application/x-keymap-mapping-type"

BACKGROUND_Z = -1.0


class MappingScene(QGraphicsScene):
    """
    Canvas scene for the key-mapping editor.

    The scene rect is the canvas.  A background image, when set, is fitted
    into the canvas keeping its aspect ratio; its on-canvas rectangle is the
    reference frame for normalized coordinates.
    """

    def __init__(self, settings: Optional[SettingsManager] = None, parent=None):
        super().__init__(parent)
        self._settings = settings or get_settings()
        canvas = self._settings.settings.canvas
        self._canvas_w = max(canvas.min_width, canvas.width)
        self._canvas_h = max(canvas.min_height, canvas.height)
        self.setSceneRect(QRectF(0, 0, self._canvas_w, self._canvas_h))

        self._background_pixmap: Optional[QPixmap] = None
        self._background_item: Optional[QGraphicsPixmapItem] = None

        self._pending_size: Optional[Tuple[int, int]] = None
        self._resize_timer = QTimer()
        self._resize_timer.setSingleShot(True)
        self._resize_timer.setInterval(canvas.resize_debounce_ms)
        self._resize_timer.timeout.connect(self._apply_pending_resize)

        self._key_capture = None
        self._on_empty_click: Optional[Callable[[], None]] = None
        self._on_context_click: Optional[Callable[[float, float], None]] = None
        self._on_drop: Optional[Callable[[str, float, float], None]] = None
        self._on_resized: Optional[Callable[[], None]] = None

    def configure_linkage(
        self,
        key_capture,
        on_empty_click: Callable[[], None],
        on_context_click: Callable[[float, float], None],
        on_drop: Callable[[str, float, float], None],
        on_resized: Callable[[], None],
    ):
        """
        Configure callbacks for Scene<->Session linkage.

        Args:
            key_capture: Session ``KeyCapture`` that receives keys and mouse buttons while active
            on_empty_click: Left click on empty canvas (deselect)
            on_context_click: Right click on empty canvas, with the scene position
            on_drop: Palette drop, with the mapping type tag and scene position
            on_resized: Canvas size or background geometry changed
        """
        self._key_capture = key_capture
        self._on_empty_click = on_empty_click
        self._on_context_click = on_context_click
        self._on_drop = on_drop
        self._on_resized = on_resized

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def canvas_size(self) -> Tuple[int, int]:
        return self._canvas_w, self._canvas_h

    def canvas_frame(self) -> ReferenceFrame:
        return ReferenceFrame(0.0, 0.0, float(self._canvas_w), float(self._canvas_h))

    def background_frame(self) -> Optional[ReferenceFrame]:
        if self._background_item is None:
            return None
        rect = self._background_item.sceneBoundingRect()
        return ReferenceFrame(rect.x(), rect.y(), rect.width(), rect.height())

    def background_size(self) -> Optional[Tuple[int, int]]:
        """Intrinsic size of the background image, or None."""
        if self._background_pixmap is None:
            return None
        return self._background_pixmap.width(), self._background_pixmap.height()

    def set_canvas_size(self, width: int, height: int) -> None:
        """Resize the canvas immediately (clamped to the minimum size) and refit the background."""
        canvas = self._settings.settings.canvas
        self._canvas_w = max(canvas.min_width, int(width))
        self._canvas_h = max(canvas.min_height, int(height))
        self.setSceneRect(QRectF(0, 0, self._canvas_w, self._canvas_h))
        self._fit_background()
        trace(f"canvas {self._canvas_w}x{self._canvas_h}", "SCENE")
        if self._on_resized:
            self._on_resized()

    def schedule_resize(self, width: int, height: int) -> None:
        """Debounced ``set_canvas_size``: only the last size of a burst is applied."""
        self._pending_size = (int(width), int(height))
        self._resize_timer.start()

    def _apply_pending_resize(self) -> None:
        if self._pending_size is None:
            return
        width, height = self._pending_size
        self._pending_size = None
        self.set_canvas_size(width, height)

    # ------------------------------------------------------------------
    # Background
    # ------------------------------------------------------------------

    def set_background(self, pixmap: Optional[QPixmap]) -> None:
        """Show *pixmap* fitted into the canvas; ``None`` removes the background."""
        if self._background_item is not None:
            self.removeItem(self._background_item)
            self._background_item = None
        self._background_pixmap = None
        if pixmap is not None and not pixmap.isNull():
            self._background_pixmap = pixmap
            self._background_item = QGraphicsPixmapItem(pixmap)
            self._background_item.setTransformationMode(Qt.TransformationMode.SmoothTransformation)
            self._background_item.setZValue(BACKGROUND_Z)
            self.addItem(self._background_item)
            self._fit_background()
        if self._on_resized:
            self._on_resized()

    def load_background(self, path: str) -> bool:
        pixmap = QPixmap(path)
        if pixmap.isNull():
            log.warning("Could not load background image: %s", path)
            return False
        self.set_background(pixmap)
        return True

    def _fit_background(self) -> None:
        if self._background_item is None or self._background_pixmap is None:
            return
        pw, ph = self._background_pixmap.width(), self._background_pixmap.height()
        frame = fit_background(pw, ph, self._canvas_w, self._canvas_h)
        self._background_item.setScale(frame.width / pw if pw else 1.0)
        self._background_item.setPos(frame.x, frame.y)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _capturing(self) -> bool:
        return self._key_capture is not None and self._key_capture.is_capturing

    def mousePressEvent(self, event):
        # While a badge waits for input, a mouse button is the binding
        if self._capturing():
            key = key_from_mouse_button(event.button())
            if key:
                self._key_capture.key_received(key)
            else:
                self._key_capture.click_outside()
            event.accept()
            return

        super().mousePressEvent(event)
        if event.isAccepted():
            return

        pos = event.scenePos()
        if event.button() == Qt.MouseButton.RightButton and self._on_context_click:
            self._on_context_click(pos.x(), pos.y())
            event.accept()
        elif event.button() == Qt.MouseButton.LeftButton and self._on_empty_click:
            self._on_empty_click()

    def keyPressEvent(self, event):
        if self._capturing():
            event.accept()
            return
        super().keyPressEvent(event)

    def keyReleaseEvent(self, event):
        if self._capturing():
            # Untranslatable keys keep the capture open
            self._key_capture.key_received(key_from_event(event))
            event.accept()
            return
        super().keyReleaseEvent(event)

    def focusOutEvent(self, event):
        if self._capturing():
            self._key_capture.focus_lost()
        super().focusOutEvent(event)

    def dragEnterEvent(self, event):
        if event.mimeData().hasFormat(MAPPING_MIME_TYPE):
            event.acceptProposedAction()
        else:
            super().dragEnterEvent(event)

    def dragMoveEvent(self, event):
        if event.mimeData().hasFormat(MAPPING_MIME_TYPE):
            event.acceptProposedAction()
        else:
            super().dragMoveEvent(event)

    def dropEvent(self, event):
        mime = event.mimeData()
        if not mime.hasFormat(MAPPING_MIME_TYPE):
            super().dropEvent(event)
            return
        kind = bytes(mime.data(MAPPING_MIME_TYPE)).decode("utf-8")
        pos = event.scenePos()
        if self._on_drop:
            self._on_drop(kind, pos.x(), pos.y())
        event.acceptProposedAction()
