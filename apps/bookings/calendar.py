"""
Calendar builder: the bookable-looking days of a month.

Pure functions, no database access. Availability filtering happens in
availability.py on top of the days produced here.
"""
from dataclasses import dataclass
from datetime import date as date_type, timedelta

from django.utils.formats import date_format


@dataclass(frozen=True)
class CalendarDay:
    date: date_type
    label: str

    @property
    def iso(self) -> str:
        return self.date.isoformat()

    @property
    def weekday(self) -> int:
        """ISO weekday, 1=Monday..7=Sunday."""
        return self.date.isoweekday()

    def to_dict(self) -> dict:
        return {'iso': self.iso, 'label': self.label, 'weekday': self.weekday}


def day_label(day: date_type) -> str:
    """Localised 'weekday day month' label, e.g. 'lun 06 oct'."""
    return date_format(day, 'D d M')


def build_month_days(year: int, month_index: int, today: date_type):
    """
    Yield every day of the month that is not before `today`.

    `month_index` is zero-based (0=January). Each call returns a fresh
    generator, so the sequence can be iterated again with the same result.
    """
    current = date_type(year, month_index + 1, 1)
    while current.month == month_index + 1:
        if current >= today:
            yield CalendarDay(current, day_label(current))
        current += timedelta(days=1)


def month_for_offset(today: date_type, offset: int) -> tuple:
    """(year, zero-based month) shown `offset` months after today's month."""
    absolute = today.year * 12 + today.month - 1 + offset
    return absolute // 12, absolute % 12


def candidate_days(year: int, month_index: int, today: date_type, open_weekdays) -> list:
    """Days of the month the barber could work, before asking for slots."""
    return [
        day for day in build_month_days(year, month_index, today)
        if day.weekday in open_weekdays
    ]
