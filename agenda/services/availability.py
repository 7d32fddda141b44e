"""
Availability calculation for a professional, a service duration and a date.

Pure domain logic: no database, no clock, no I/O. Every input, including the
evaluation instant ``now``, is passed in by the caller.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from agenda.core.exceptions import InvalidInputError
from agenda.models.working_hours import Weekday
from agenda.schemas.scheduling import BusyInterval, DaySchedule, WeeklySchedule
from agenda.utils.timezone import to_local_naive

logger = logging.getLogger(__name__)

# Offered start times are aligned to this step from the start of work hours
PROBE_STEP_MINUTES = 15


class AvailabilityCalculator:
    """
    Computes the bookable slot starts of one day.

    Algorithm:
    1. Resolve the weekday of the target date and its day schedule
    2. Anchor work hours and breaks to the date's midnight
    3. Probe candidate starts every 15 minutes from the window start
    4. Keep a candidate when the full service duration fits in the window,
       overlaps no busy interval (half-open) and lies strictly after ``now``
    """

    def __init__(self, probe_step_minutes: int = PROBE_STEP_MINUTES):
        if probe_step_minutes <= 0:
            raise ValueError("Probe step must be positive")
        self.probe_step = timedelta(minutes=probe_step_minutes)

    def compute_available_slots(
        self,
        target_date: Optional[date],
        work_schedule: Optional[WeeklySchedule],
        duration_minutes: int,
        busy_intervals: Iterable[BusyInterval],
        now: datetime,
    ) -> List[datetime]:
        """
        Return the ascending list of available slot starts.

        Args:
            target_date: Calendar date; the time of a datetime is ignored
            work_schedule: Weekly schedule of the professional, may be None
            duration_minutes: Service duration, must be a positive integer
            busy_intervals: Appointments and time blocks of that day
            now: Evaluation instant; only starts strictly after it qualify.
                An aware value is converted to local wall-clock time

        Raises:
            InvalidInputError: If the date is missing or the duration is not
                a positive integer
        """
        if target_date is None:
            raise InvalidInputError("A target date is required")
        if (
            isinstance(duration_minutes, bool)
            or not isinstance(duration_minutes, int)
            or duration_minutes <= 0
        ):
            raise InvalidInputError(
                f"Service duration must be a positive number of minutes, "
                f"got {duration_minutes!r}"
            )

        day = target_date.date() if isinstance(target_date, datetime) else target_date
        now = to_local_naive(now)

        day_schedule = self.resolve_day_schedule(day, work_schedule)
        if day_schedule is None:
            logger.debug(f"No active schedule on {day}")
            return []

        window_start = self._anchor(day, day_schedule.work_hours.start)
        window_end = self._anchor(day, day_schedule.work_hours.end)
        if window_start >= window_end:
            logger.debug(f"Empty work window on {day}: {window_start} - {window_end}")
            return []

        busy = list(busy_intervals) + self._anchor_breaks(day, day_schedule)
        duration = timedelta(minutes=duration_minutes)

        slots: List[datetime] = []
        cursor = window_start

        while cursor < window_end:
            slot_end = cursor + duration
            if slot_end > window_end:
                break

            is_overlapping = any(b.overlaps(cursor, slot_end) for b in busy)
            is_future = cursor > now

            if not is_overlapping and is_future:
                slots.append(cursor)

            cursor += self.probe_step

        logger.debug(
            f"Computed {len(slots)} slots on {day} "
            f"({window_start.time()}-{window_end.time()}, {duration_minutes} min, "
            f"{len(busy)} busy intervals)"
        )
        return slots

    @staticmethod
    def resolve_day_schedule(
        day: date, work_schedule: Optional[WeeklySchedule]
    ) -> Optional[DaySchedule]:
        """Active day schedule for the weekday of ``day``, or None."""
        if not work_schedule:
            return None

        day_schedule = work_schedule.get(Weekday.for_date(day))
        if day_schedule is None or not day_schedule.is_active:
            return None
        return day_schedule

    @staticmethod
    def _anchor(day: date, time_of_day: time) -> datetime:
        return datetime.combine(day, time_of_day)

    def _anchor_breaks(self, day: date, day_schedule: DaySchedule) -> List[BusyInterval]:
        return [
            BusyInterval(
                start=self._anchor(day, period.start),
                end=self._anchor(day, period.end),
                source="break",
            )
            for period in day_schedule.breaks
        ]
