"""
Free Time - turn calendar busy slots into free minutes for one day.

The adapter fetches free/busy slots; this module only does the arithmetic:
- merge overlapping or nearly adjacent busy slots
- clip them to the working window
- free minutes = window length - busy minutes
"""

import logging
from datetime import date, datetime

from nextmove.dates import align_to, parse_time_of_day
from nextmove.models import BusySlot

logger = logging.getLogger(__name__)

WORK_START = "09:00"
WORK_END = "17:00"
ADJACENCY_MINUTES = 5


def merge_busy_slots(slots: list[BusySlot], adjacency_minutes: int = ADJACENCY_MINUTES) -> list[BusySlot]:
    """
    Merge overlapping slots, and slots separated by less than
    `adjacency_minutes` (a 3-minute gap between meetings is not free time).
    """
    ordered = sorted((s for s in slots if s.end > s.start), key=lambda s: (s.start, s.end))
    merged: list[BusySlot] = []
    for slot in ordered:
        if merged:
            last = merged[-1]
            gap_minutes = (align_to(slot.start, last.end) - last.end).total_seconds() / 60
            if gap_minutes < adjacency_minutes:
                if slot.end > last.end:
                    last.end = slot.end
                continue
        merged.append(BusySlot(start=slot.start, end=slot.end))
    return merged


def calculate_free_minutes(
    day: date,
    work_start: str = WORK_START,
    work_end: str = WORK_END,
    busy_slots: list[BusySlot] | None = None,
) -> int:
    """
    Free minutes inside the working window of `day`.

    Busy slots are read in the zone of their own timestamps and compared
    with a naive working window on the same wall clock.
    """
    start_h, start_m = parse_time_of_day(work_start, default=(9, 0))
    end_h, end_m = parse_time_of_day(work_end, default=(17, 0))
    window_start = datetime(day.year, day.month, day.day, start_h, start_m)
    window_end = datetime(day.year, day.month, day.day, end_h, end_m)
    if window_end <= window_start:
        logger.warning("Empty working window %s-%s on %s", work_start, work_end, day)
        return 0

    total = (window_end - window_start).total_seconds() / 60
    busy = 0.0
    for slot in merge_busy_slots(busy_slots or []):
        start = align_to(slot.start, window_start)
        end = align_to(slot.end, window_start)
        clipped_start = max(start, window_start)
        clipped_end = min(end, window_end)
        if clipped_end > clipped_start:
            busy += (clipped_end - clipped_start).total_seconds() / 60

    return max(0, int(total - busy))
