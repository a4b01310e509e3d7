"""
schemas/__init__.py

JSON Schema definition and validation utilities for key mapping documents.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator, ValidationError

# Schema file paths
SCHEMA_DIR = os.path.dirname(os.path.abspath(__file__))
KEYMAP_SCHEMA_PATH = os.path.join(SCHEMA_DIR, "keymap_schema.json")

# Cached schema
_keymap_schema: Optional[Dict] = None


def get_keymap_schema() -> Dict:
    """Load and return the key mapping document schema."""
    global _keymap_schema
    if _keymap_schema is None:
        with open(KEYMAP_SCHEMA_PATH, "r", encoding="utf-8") as f:
            _keymap_schema = json.load(f)
    return _keymap_schema


def _format_errors(errors: List[ValidationError]) -> List[str]:
    messages = []
    for error in errors:
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        messages.append(f"{path}: {error.message}")
    return messages


def validate_document(data: Any) -> Tuple[bool, List[str]]:
    """
    Validate a whole document against the key mapping schema.

    Args:
        data: The parsed JSON document

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    validator = Draft202012Validator(get_keymap_schema())
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    if not errors:
        return True, []
    return False, _format_errors(errors)


def validate_mapping(record: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate a single mapping record (one ``keyMapNodes`` entry).

    Args:
        record: A single mapping dictionary

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    schema = get_keymap_schema()
    defs = schema.get("$defs", {})
    full_schema = {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "$defs": defs,
        **defs["mappingItem"],
    }
    validator = Draft202012Validator(full_schema)
    errors = list(validator.iter_errors(record))
    if not errors:
        return True, []
    return False, _format_errors(errors)


