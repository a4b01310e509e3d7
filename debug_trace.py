"""
debug_trace.py

Stderr tracing of node lifecycle, drags, scaling and key capture.

KEYMAP_TRACE=1 turns it on; KEYMAP_TRACE=all adds one line per drag frame.
"""

import os
import sys
from datetime import datetime
from functools import wraps

_MODE = os.environ.get("KEYMAP_TRACE", "")

DEBUG_TRACE = bool(_MODE)
TRACE_DRAG_FRAMES = _MODE == "all"


def trace(msg: str, category: str = "INFO"):
    """Print a timestamped trace line to stderr."""
    if not DEBUG_TRACE:
        return
    if category == "FRAME" and not TRACE_DRAG_FRAMES:
        return
    stamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    print(f"[{stamp}] [{category}] {msg}", file=sys.stderr, flush=True)


def trace_call(category: str = "CALL"):
    """Decorator tracing entry, exit and exceptions of a call.

    Decided at decoration time: with tracing off the function is returned as is.
    """
    def decorator(func):
        if not DEBUG_TRACE:
            return func

        @wraps(func)
        def wrapper(*args, **kwargs):
            name = func.__qualname__
            trace(f">>> {name}", category)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                trace(f"!!! {name} raised {type(e).__name__}: {e}", "ERROR")
                raise
            trace(f"<<< {name}", category)
            return result
        return wrapper
    return decorator
