from datetime import date, timedelta


def today() -> date:
    return date.today()


def parse_day(text: str) -> date:
    """Parse a strict YYYY-MM-DD string."""
    if len(text) != 10:
        raise ValueError(f"expected YYYY-MM-DD, got {text!r}")
    return date.fromisoformat(text)


def week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def week_dates(start: date) -> list[str]:
    return [(start + timedelta(days=offset)).isoformat() for offset in range(7)]


def next_week_start(day: date) -> date:
    return week_start(day) + timedelta(days=7)


def previous_week_start(day: date) -> date:
    return week_start(day) - timedelta(days=7)
