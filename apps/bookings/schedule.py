"""
Opening-hours primitives shared by the slot engine and the schedule editor.

A day's hours are an ordered list of disjoint TimeRange values: usually
zero (closed), one, or two (split shift), but nothing assumes a maximum.
"""
from dataclasses import dataclass
from datetime import date as date_type, datetime, time as time_type


class InvalidRangeError(ValueError):
    pass


def parse_hhmm(value) -> time_type:
    """Parse 'HH:MM' (or 'HH:MM:SS') into a time; raise InvalidRangeError otherwise."""
    if isinstance(value, time_type):
        return value.replace(second=0, microsecond=0)
    for fmt in ('%H:%M', '%H:%M:%S'):
        try:
            return datetime.strptime(str(value), fmt).time()
        except (TypeError, ValueError):
            continue
    raise InvalidRangeError(f"Invalid time {value!r}; expected HH:MM.")


def format_hhmm(t: time_type) -> str:
    return t.strftime('%H:%M')


def normalize_weekday(value: int) -> int:
    """Map a 0=Sunday numbering onto ISO weekdays 1=Monday..7=Sunday."""
    value = int(value)
    if value == 0:
        return 7
    if not 1 <= value <= 7:
        raise InvalidRangeError(f"Weekday {value} out of range.")
    return value


def iso_weekday(day: date_type) -> int:
    return day.isoweekday()


@dataclass(frozen=True, order=True)
class TimeRange:
    start: time_type
    end: time_type

    @classmethod
    def parse(cls, start, end) -> 'TimeRange':
        rng = cls(parse_hhmm(start), parse_hhmm(end))
        if rng.start >= rng.end:
            raise InvalidRangeError(
                f"Range {format_hhmm(rng.start)}–{format_hhmm(rng.end)} must start before it ends."
            )
        return rng

    def contains(self, t: time_type) -> bool:
        """Slot starts are inclusive of the end time."""
        return self.start <= t <= self.end

    def overlaps(self, other: 'TimeRange') -> bool:
        return self.start < other.end and other.start < self.end

    def to_dict(self) -> dict:
        return {'start': format_hhmm(self.start), 'end': format_hhmm(self.end)}


def normalize_ranges(ranges) -> list:
    """
    Sort ranges and reject overlapping ones.

    Accepts TimeRange values or {'start': 'HH:MM', 'end': 'HH:MM'} dicts.
    """
    parsed = []
    for item in ranges:
        if isinstance(item, TimeRange):
            parsed.append(item)
        else:
            try:
                parsed.append(TimeRange.parse(item['start'], item['end']))
            except (KeyError, TypeError) as exc:
                raise InvalidRangeError('Each range needs a start and an end.') from exc
    parsed.sort()
    for prev, cur in zip(parsed, parsed[1:]):
        if prev.overlaps(cur):
            raise InvalidRangeError(
                f"Ranges {format_hhmm(prev.start)}–{format_hhmm(prev.end)} and "
                f"{format_hhmm(cur.start)}–{format_hhmm(cur.end)} overlap."
            )
    return parsed


def any_range_contains(ranges, t: time_type) -> bool:
    return any(r.contains(t) for r in ranges)


# ── Model-backed lookups ──────────────────────────────────────────────────────

def weekly_ranges(barber, weekday: int) -> list:
    return [
        TimeRange(s.start_time, s.end_time)
        for s in barber.weekly_slots.filter(weekday=weekday).order_by('start_time')
    ]


def open_ranges(barber, day: date_type) -> list:
    """
    Hours the barber works on `day`.

    Any ExceptionalDay row for the date replaces the weekly schedule
    entirely; rows without times contribute nothing, closing the date.
    """
    exceptional = list(barber.exceptional_days.filter(date=day).order_by('start_time'))
    if exceptional:
        return [
            TimeRange(e.start_time, e.end_time)
            for e in exceptional if not e.is_closed
        ]
    return weekly_ranges(barber, iso_weekday(day))


def open_weekdays(barber) -> frozenset:
    """ISO weekdays with at least one weekly range."""
    return frozenset(barber.weekly_slots.values_list('weekday', flat=True).distinct())


def weekly_schedule(barber) -> dict:
    """{weekday: [TimeRange, ...]} for every weekday the barber opens."""
    schedule = {}
    for s in barber.weekly_slots.order_by('weekday', 'start_time'):
        schedule.setdefault(s.weekday, []).append(TimeRange(s.start_time, s.end_time))
    return schedule
