"""Rules applied to every time entry document before it is written.

These mirror what a database trigger on the ``time_entries`` table would
do, so a stored document can never carry a duration that disagrees with
its start and end instants.
"""
from datetime import datetime
from typing import Optional

from app.utils.duration import calculate_duration_minutes, ensure_utc, utcnow


def normalize_entry(
    doc: dict,
    previous: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Derive ``end_time``, ``duration_minutes`` and ``is_running`` for a document.

    Args:
        doc: The document as it will be written (full document, not a diff)
        previous: The stored document before this write, for updates
        now: Instant to substitute when a running entry is closed without
             an end time (defaults to the current instant)

    Returns:
        A new dict with the derived fields applied
    """
    result = dict(doc)
    result["start_time"] = ensure_utc(result["start_time"])
    result["end_time"] = ensure_utc(result.get("end_time"))

    was_running = bool(previous and previous.get("is_running"))

    if result["end_time"] is not None:
        result["duration_minutes"] = calculate_duration_minutes(
            result["start_time"], result["end_time"]
        )
        result["is_running"] = False
    elif was_running and result.get("is_running") is False:
        # Closed by flipping the flag: the end is "now"
        result["end_time"] = ensure_utc(now) if now is not None else utcnow()
        result["duration_minutes"] = calculate_duration_minutes(
            result["start_time"], result["end_time"]
        )
    elif result.get("is_running"):
        result["duration_minutes"] = None

    return result
