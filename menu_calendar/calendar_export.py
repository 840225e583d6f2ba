"""
iCalendar export for daily menus
One all-day event per meal per school day
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Optional

from icalendar import Calendar, Event

from menu_calendar.models import DailyMenu


def event_uid(daily_menu: DailyMenu, calendar_slug: str) -> str:
    """Stable UID so re-imports update events instead of duplicating them"""
    return f"{daily_menu.date.strftime('%Y%m%d')}-{daily_menu.meal_type.value}@{calendar_slug}"


def event_summary(daily_menu: DailyMenu) -> str:
    names = ', '.join(item.name for item in daily_menu.menu_items)
    return f"{daily_menu.meal_type.value.capitalize()}: {names}"


def event_description(daily_menu: DailyMenu) -> str:
    lines = []
    for item in daily_menu.menu_items:
        line = item.description or item.name
        if item.is_vegan:
            line += " (vegan)"
        elif item.is_vegetarian:
            line += " (vegetarian)"
        lines.append(f"- {line}")
    return '\n'.join(lines)


def create_event(daily_menu: DailyMenu, calendar_slug: str, stamp: datetime) -> Event:
    """All-day event for one meal on one day"""
    event = Event()
    event.add('uid', event_uid(daily_menu, calendar_slug))
    event.add('dtstamp', stamp)
    event.add('dtstart', daily_menu.date)
    event.add('dtend', daily_menu.date + timedelta(days=1))
    event.add('summary', event_summary(daily_menu))
    event.add('description', event_description(daily_menu))
    event.add('transp', 'TRANSPARENT')
    return event


def build_calendar(daily_menus: Iterable[DailyMenu], calendar_name: str,
                   calendar_slug: str = 'school-menu',
                   generated_at: Optional[datetime] = None) -> Calendar:
    """
    Build an iCalendar object from daily menus

    Args:
        daily_menus: Menus to export, one VEVENT each; menus without items are skipped
        calendar_name: X-WR-CALNAME shown by calendar apps
        calendar_slug: Domain part of event UIDs
        generated_at: DTSTAMP value (defaults to now, UTC)

    Returns:
        icalendar Calendar with events sorted by date and meal type
    """
    stamp = generated_at or datetime.now(timezone.utc)

    cal = Calendar()
    cal.add('prodid', '-//School Menu Calendar//EN')
    cal.add('version', '2.0')
    cal.add('calscale', 'GREGORIAN')
    cal.add('method', 'PUBLISH')
    cal.add('x-wr-calname', calendar_name)

    ordered = sorted(daily_menus, key=lambda menu: (menu.date, menu.meal_type.value))
    for daily_menu in ordered:
        if not daily_menu.menu_items:
            continue
        cal.add_component(create_event(daily_menu, calendar_slug, stamp))

    return cal


def generate_ics(daily_menus: Iterable[DailyMenu], calendar_name: str,
                 calendar_slug: str = 'school-menu',
                 generated_at: Optional[datetime] = None) -> str:
    """Serialize daily menus as ICS text"""
    cal = build_calendar(daily_menus, calendar_name, calendar_slug, generated_at)
    return cal.to_ical().decode('utf-8')


def write_ics(daily_menus: Iterable[DailyMenu], output_file: str, calendar_name: str,
              calendar_slug: str = 'school-menu') -> Path:
    """Generate an ICS file and save it, creating parent directories"""
    output_path = Path(output_file)
    output_path.parent.mkdir(exist_ok=True, parents=True)

    cal = build_calendar(daily_menus, calendar_name, calendar_slug)
    with open(output_path, 'wb') as f:
        f.write(cal.to_ical())

    print(f"ICS calendar saved to {output_file}")
    return output_path
