"""
key_capture.py

Key-binding capture as an explicit state machine.

States are ``IDLE`` and ``CAPTURING`` (with exactly one target).  Starting a
capture while another is in progress releases the previous target first, so
two badges can never wait for input at the same time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from debug_trace import trace

log = logging.getLogger(__name__)


class CaptureState:
    IDLE = "idle"
    CAPTURING = "capturing"


@dataclass
class CaptureTarget:
    """Where a captured key goes.

    Attributes:
        owner: Object owning the binding (usually a node); used for release on destroy.
        slot: Which binding of the owner is being edited (``"key"``, ``"up"``, ``"smallEyes"``...).
        on_key: Called with the captured key id.
        on_active: Called with ``True`` when capture starts and ``False`` when it ends.
    """
    owner: Any
    slot: str
    on_key: Callable[[str], None]
    on_active: Optional[Callable[[bool], None]] = None

    def matches(self, other: "CaptureTarget") -> bool:
        return self.owner is other.owner and self.slot == other.slot


class KeyCapture:
    """Single-owner key capture session."""

    def __init__(self):
        self.state = CaptureState.IDLE
        self.target: Optional[CaptureTarget] = None

    @property
    def is_capturing(self) -> bool:
        return self.state == CaptureState.CAPTURING

    def is_capturing_for(self, owner: Any, slot: Optional[str] = None) -> bool:
        if self.target is None or self.target.owner is not owner:
            return False
        return slot is None or self.target.slot == slot

    def start(self, target: CaptureTarget) -> bool:
        """Begin capturing for *target*.

        Starting again on the target that is already capturing toggles the
        capture off.

        Returns:
            True if a capture is now in progress.
        """
        if self.target is not None and self.target.matches(target):
            self.cancel()
            return False
        self._release()
        self.state = CaptureState.CAPTURING
        self.target = target
        trace(f"key capture start slot={target.slot}", "KEYS")
        if target.on_active:
            target.on_active(True)
        return True

    def key_received(self, key: Optional[str]) -> bool:
        """Deliver a translated key.  ``None`` (untranslatable input) keeps the capture open.

        Returns:
            True if the key was applied to a target.
        """
        if self.target is None or not key:
            return False
        target = self.target
        self._release()
        trace(f"key captured {key} slot={target.slot}", "KEYS")
        target.on_key(key)
        return True

    def focus_lost(self) -> None:
        self.cancel()

    def click_outside(self) -> None:
        self.cancel()

    def cancel(self) -> None:
        if self.target is not None:
            trace(f"key capture cancelled slot={self.target.slot}", "KEYS")
        self._release()

    def release_owner(self, owner: Any) -> None:
        """Cancel the capture if it belongs to *owner* (called when a node is destroyed)."""
        if self.target is not None and self.target.owner is owner:
            self.cancel()

    def _release(self) -> None:
        target = self.target
        self.state = CaptureState.IDLE
        self.target = None
        if target is not None and target.on_active:
            target.on_active(False)
