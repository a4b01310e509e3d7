"""
config_codec.py

Reads and writes the key mapping JSON document.

Loading is all-or-nothing: the document is schema-checked and every record
is built before the registry is cleared, so a bad file leaves the current
session untouched.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Union

from models import MappingKind, MappingRecord, record_from_dict
from debug_trace import trace, trace_call
from schemas import validate_document
from utils import sort_record_keys

if TYPE_CHECKING:
    from session import EditorContext

log = logging.getLogger(__name__)


class ConfigCodec:
    """Document (de)serialization for one editing session."""

    def __init__(self, ctx: "EditorContext"):
        self.ctx = ctx

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def to_document(self) -> Dict[str, Any]:
        ctx = self.ctx
        width, height = ctx.reference_size()
        doc: Dict[str, Any] = {"switchKey": ctx.switch_key}
        mouse = ctx.registry.mouse_move_node()
        if mouse is not None:
            doc["mouseMoveMap"] = sort_record_keys(mouse.to_record())
        doc["keyMapNodes"] = [sort_record_keys(rec) for rec in ctx.registry.mappings()]
        doc["width"] = int(width)
        doc["height"] = int(height)
        return doc

    def dumps(self, indent: int = 2) -> str:
        return json.dumps(self.to_document(), indent=indent)

    @trace_call("CODEC")
    def save(self, path: Union[str, Path]) -> bool:
        path = Path(path)
        try:
            path.write_text(self.dumps(), encoding="utf-8")
        except OSError as e:
            log.error("Could not write %s: %s", path, e)
            return False
        self._remember_dir(path)
        return True

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    @trace_call("CODEC")
    def load(self, path: Union[str, Path]) -> bool:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            log.error("Could not read %s: %s", path, e)
            return False
        if not self.loads(text):
            return False
        self._remember_dir(path)
        return True

    def loads(self, text: str) -> bool:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            log.error("Key mapping document is not valid JSON: %s", e)
            return False
        return self.from_document(data)

    @trace_call("CODEC")
    def from_document(self, data: Any) -> bool:
        """
        Replace the session's nodes with the mappings in *data*.

        Returns:
            True on success.  On failure the registry is left as it was.
        """
        ok, errors = validate_document(data)
        if not ok:
            log.error("Key mapping document failed validation: %s", "; ".join(errors))
            return False

        frame = self.ctx.space.frame()
        try:
            records = self._build_records(data, frame)
        except (ValueError, TypeError) as e:
            log.error("Key mapping document has an unusable record: %s", e)
            return False

        registry = self.ctx.registry
        registry.clear_all()
        self.ctx.set_switch_key(data.get("switchKey", ""))
        self._remember_size(data)
        for record in records:
            registry.create_node(record)
        trace(f"loaded {registry.node_count()} mappings", "CODEC")
        return True

    def _build_records(self, data: Dict[str, Any], frame) -> List[MappingRecord]:
        records: List[MappingRecord] = []
        have_mouse = False

        mouse_source = data.get("mouseMoveMap")
        if mouse_source:
            source = dict(mouse_source)
            source.setdefault("type", MappingKind.MOUSE_MOVE)
            records.append(record_from_dict(source, frame))
            have_mouse = True

        for index, item in enumerate(data.get("keyMapNodes", [])):
            try:
                record = record_from_dict(item, frame)
            except KeyError:
                log.warning("Skipping mapping %d: unsupported type %r", index, item.get("type"))
                continue
            if record.type == MappingKind.MOUSE_MOVE:
                if have_mouse:
                    log.warning("Skipping mapping %d: only one mouse-move mapping is allowed", index)
                    continue
                have_mouse = True
            records.append(record)
        return records

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _remember_size(self, data: Dict[str, Any]) -> None:
        width, height = data.get("width"), data.get("height")
        if not width or not height:
            self.ctx.document_size = None
            return
        self.ctx.document_size = (int(width), int(height))
        background = self.ctx.scene.background_size()
        if background is not None and background != self.ctx.document_size:
            log.warning(
                "Document was made for a %dx%d frame but the background is %dx%d",
                width, height, background[0], background[1],
            )

    def _remember_dir(self, path: Path) -> None:
        settings = self.ctx.settings
        settings.settings.document.last_dir = str(path.resolve().parent)
        try:
            settings.save()
        except OSError as e:
            log.warning("Could not persist last directory: %s", e)

