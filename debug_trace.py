"""
debug_trace.py

Category-tagged trace output for the scene editor.

Tracing is off until configure() switches it on; main.py does that from the
[debug] settings section. Lines go to stderr and, when a log file is set,
to that file as well.
"""

import sys
import traceback
from datetime import datetime
from functools import wraps
from typing import FrozenSet, Iterable, Optional

# Set to True to enable debug tracing
DEBUG_TRACE = False

# Set to True to also emit the per-frame / per-set_coords categories
TRACE_PAINT = False

# Log file (None for stderr only)
LOG_FILE: Optional[str] = None

# Categories that fire on every paint or every corner-cache refresh
VERBOSE_CATEGORIES = frozenset(("PAINT", "COORDS"))

# When non-empty, only these categories are emitted (ERROR always is)
_categories: FrozenSet[str] = frozenset()

_log_file = None


def configure(enabled: bool, trace_paint: bool = False, log_file: Optional[str] = None,
              categories: Optional[Iterable[str]] = None):
    """Switch tracing on or off.

    Args:
        enabled: Master switch
        trace_paint: Also emit the verbose categories (PAINT, COORDS)
        log_file: Path to mirror trace lines into; empty or None for stderr only
        categories: Restrict output to these categories; empty or None for all
    """
    global DEBUG_TRACE, TRACE_PAINT, LOG_FILE, _categories
    close_log()
    DEBUG_TRACE = enabled
    TRACE_PAINT = trace_paint
    LOG_FILE = log_file or None
    _categories = frozenset(c.upper() for c in (categories or ()))


def _wants(category: str) -> bool:
    if not DEBUG_TRACE:
        return False
    if category == "ERROR":
        return True
    if category in VERBOSE_CATEGORIES and not TRACE_PAINT:
        return False
    return not _categories or category in _categories


def _get_log_file():
    global _log_file
    if LOG_FILE and _log_file is None:
        try:
            _log_file = open(LOG_FILE, "w", encoding="utf-8")
        except OSError as e:
            print(f"debug_trace: cannot open {LOG_FILE}: {e}", file=sys.stderr)
    return _log_file


def trace(msg: str, category: str = "INFO"):
    """Emit ``[time] [CATEGORY] msg`` if tracing wants this category."""
    if not _wants(category):
        return

    stamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    line = f"[{stamp}] [{category}] {msg}"
    print(line, file=sys.stderr, flush=True)

    log_file = _get_log_file()
    if log_file:
        log_file.write(line + "\n")
        log_file.flush()


def trace_exception(msg: str = "Exception"):
    """Trace the exception currently being handled, with its traceback."""
    if not DEBUG_TRACE:
        return
    trace(f"{msg}: {traceback.format_exc()}", "ERROR")


def trace_call(category: str = "CALL"):
    """Decorator tracing entry, exit and exceptions of the wrapped function.

    The tracing switch is read on every call, so functions decorated at
    import time still follow a later configure().
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not _wants(category):
                return func(*args, **kwargs)
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


def close_log():
    """Close the trace log file, if one is open."""
    global _log_file
    if _log_file:
        _log_file.close()
        _log_file = None
