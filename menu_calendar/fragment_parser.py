"""
Calendar fragment parser
Turns the start tags of a menu calendar fragment into DailyMenu records

The widget renders one day box per date. Inside it are a date element and one
info block per menu item, each with a color icon and a title link:

    div.fsCalendarDaybox
        div.fsCalendarDate       data-day / data-month (zero-based) / data-year
        div.fsCalendarInfo
            span.fsElementEventColorIcon   style="background: #220AFD"
            a.fsCalendarEventTitle         title="Cheese Pizza with Carrots"

Tags are seen one at a time in document order, so a day (or item) is only
complete when the next one opens or the stream ends.
"""

import re
from datetime import date
from typing import Dict, FrozenSet, Iterable, Iterator, List, NamedTuple, Optional

from bs4 import BeautifulSoup

from menu_calendar.categories import (
    category_for_color,
    decode_title,
    is_admin_announcement,
    normalize_title,
    parse_background_color,
)
from menu_calendar.models import DailyMenu, FoodCategory, MealType, MenuItem


DAY_BOX = ('div', 'fsCalendarDaybox')
WEEKEND_MARKER = 'fsCalendarWeekendDayBox'
DATE_ELEMENT = ('div', 'fsCalendarDate')
ITEM_INFO = ('div', 'fsCalendarInfo')
COLOR_ICON = ('span', 'fsElementEventColorIcon')
EVENT_TITLE = ('a', 'fsCalendarEventTitle')


class TagEvent(NamedTuple):
    """A start tag: name, CSS classes and attributes"""
    tag: str
    classes: FrozenSet[str]
    attrs: Dict[str, str]

    def has_class(self, class_name: str) -> bool:
        return class_name in self.classes

    def matches(self, identity) -> bool:
        tag, class_name = identity
        return self.tag == tag and class_name in self.classes

    def get(self, name: str, default: str = '') -> str:
        return self.attrs.get(name, default)

    @classmethod
    def create(cls, tag: str, classes: Iterable[str] = (), **attrs) -> 'TagEvent':
        """Build an event by hand, e.g. TagEvent.create('div', ['fsCalendarDate'], **{'data-day': '3'})"""
        return cls(tag, frozenset(classes), dict(attrs))


def iter_tag_events(html: str) -> Iterator[TagEvent]:
    """
    Tokenize an HTML fragment into start-tag events in document order

    Args:
        html: Calendar fragment markup

    Yields:
        TagEvent for every element
    """
    soup = BeautifulSoup(html, 'html.parser')

    for element in soup.find_all(True):
        attrs = {}
        classes = ()
        for name, value in element.attrs.items():
            if name == 'class':
                classes = value if isinstance(value, list) else value.split()
                value = ' '.join(classes)
            elif isinstance(value, list):
                value = ' '.join(value)
            attrs[name] = value
        yield TagEvent(element.name, frozenset(classes), attrs)


LEADING_INT = re.compile(r'\s*([-+]?\d+)')


def _leading_int(value) -> Optional[int]:
    """Integer prefix of value, e.g. "3.0" -> 3 and "2abc" -> 2; None without leading digits"""
    match = LEADING_INT.match(value or '')
    return int(match.group(1)) if match else None


def parse_date_components(day: str, month: str, year: str) -> Optional[date]:
    """
    Build a date from the widget's data attributes

    Each component is read from its leading digits, so "3.0" and "3px" are day 3.

    Args:
        day: Day of month
        month: Zero-based month (0 = January)
        year: Four-digit year

    Returns:
        date, or None if any component is missing, non-positive or impossible
    """
    day_num = _leading_int(day)
    month_num = _leading_int(month)
    year_num = _leading_int(year)
    if day_num is None or month_num is None or year_num is None:
        return None

    month_num = month_num + 1 if month_num >= 0 else 0

    if day_num <= 0 or month_num <= 0 or year_num <= 0:
        return None

    try:
        return date(year_num, month_num, day_num)
    except ValueError:
        return None


class ItemAccumulator:
    """Fields of the menu item currently being read"""

    def __init__(self):
        self.name = ""
        self.description = ""
        self.category = FoodCategory.OTHER
        self.allergens: List[str] = []
        self.nutritional_info: Dict = {}

    def set_title(self, title: str):
        self.name, self.description = normalize_title(title)

    def to_menu_item(self) -> Optional[MenuItem]:
        """The finished MenuItem, or None if no title was ever set"""
        if not self.name:
            return None
        return MenuItem(
            name=self.name,
            description=self.description or self.name,
            category=self.category,
            allergens=tuple(self.allergens),
            nutritional_info=self.nutritional_info,
        )


class DayAccumulator:
    """Date and completed items of the day box currently being read"""

    def __init__(self, meal_type: MealType):
        self.meal_type = meal_type
        self.date: Optional[date] = None
        self.items: List[MenuItem] = []

    def add_item(self, item: ItemAccumulator):
        menu_item = item.to_menu_item()
        if menu_item is not None:
            self.items.append(menu_item)

    def complete(self) -> Optional[DailyMenu]:
        """A DailyMenu if the day has a date and at least one item"""
        if self.date is None or not self.items:
            return None
        return DailyMenu(date=self.date, meal_type=self.meal_type, menu_items=list(self.items))


class FragmentParser:
    """
    State machine over calendar start tags for one meal type

    Feed events in document order, then call close() to flush the last day.
    Not safe to share between threads; use one parser per fragment.
    """

    def __init__(self, meal_type: MealType):
        self.meal_type = MealType(meal_type)
        self.current_day: Optional[DayAccumulator] = None
        self.current_item: Optional[ItemAccumulator] = None
        self.completed: List[DailyMenu] = []
        self.closed = False

    def feed(self, event: TagEvent) -> Optional[DailyMenu]:
        """
        Apply one start tag

        Returns:
            The DailyMenu completed by this event, if any
        """
        if self.closed:
            raise RuntimeError("FragmentParser is closed")

        if event.matches(DAY_BOX):
            return self._on_day_box(event)
        if event.matches(DATE_ELEMENT):
            self._on_date(event)
        elif event.matches(ITEM_INFO):
            self._on_item_info()
        elif event.matches(COLOR_ICON):
            self._on_color_icon(event)
        elif event.matches(EVENT_TITLE):
            self._on_title(event)
        return None

    def feed_all(self, events: Iterable[TagEvent]):
        for event in events:
            self.feed(event)

    def finish(self) -> Optional[DailyMenu]:
        """End of stream: flush the open item and day and stop accepting events"""
        if self.closed:
            return None
        self.closed = True
        return self._complete_day()

    def close(self) -> List[DailyMenu]:
        """Flush the open item and day, then return every completed DailyMenu"""
        self.finish()
        return list(self.completed)

    def _complete_item(self):
        if self.current_item is not None and self.current_day is not None:
            self.current_day.add_item(self.current_item)
        self.current_item = None

    def _complete_day(self) -> Optional[DailyMenu]:
        self._complete_item()
        daily_menu = self.current_day.complete() if self.current_day is not None else None
        self.current_day = None
        if daily_menu is not None:
            self.completed.append(daily_menu)
        return daily_menu

    def _on_day_box(self, event: TagEvent) -> Optional[DailyMenu]:
        daily_menu = self._complete_day()
        if not event.has_class(WEEKEND_MARKER):
            self.current_day = DayAccumulator(self.meal_type)
        # Weekend boxes leave no open day, so their contents are ignored
        return daily_menu

    def _on_date(self, event: TagEvent):
        if self.current_day is None:
            return
        parsed = parse_date_components(
            event.get('data-day', '0'),
            event.get('data-month', '0'),
            event.get('data-year', '0'),
        )
        if parsed is not None:
            self.current_day.date = parsed

    def _on_item_info(self):
        self._complete_item()
        self.current_item = ItemAccumulator()

    def _on_color_icon(self, event: TagEvent):
        if self.current_item is None:
            return
        color = parse_background_color(event.get('style'))
        self.current_item.category = category_for_color(color)

    def _on_title(self, event: TagEvent):
        if self.current_item is None:
            return
        title = decode_title(event.get('title'))
        if not title:
            return
        if is_admin_announcement(title):
            # Drop the whole entry; later icon/title tags for it are ignored
            self.current_item = None
            return
        self.current_item.set_title(title)


def iter_daily_menus(events: Iterable[TagEvent], meal_type: MealType) -> Iterator[DailyMenu]:
    """
    Lazily yield DailyMenus as each day box completes

    Args:
        events: Start tags in document order
        meal_type: Meal type the fragment was requested for

    Yields:
        DailyMenu records with a date and at least one item
    """
    parser = FragmentParser(meal_type)
    for event in events:
        daily_menu = parser.feed(event)
        if daily_menu is not None:
            yield daily_menu
    daily_menu = parser.finish()
    if daily_menu is not None:
        yield daily_menu


def parse_events(events: Iterable[TagEvent], meal_type: MealType) -> List[DailyMenu]:
    """Run a captured event list through a fresh FragmentParser"""
    parser = FragmentParser(meal_type)
    parser.feed_all(events)
    return parser.close()


def parse_fragment(html: str, meal_type: MealType) -> List[DailyMenu]:
    """
    Parse a calendar fragment for one meal type

    Malformed days (no date, no items) and non-food entries are dropped
    silently; this never raises for bad day content.

    Args:
        html: Fragment markup returned by the calendar endpoint
        meal_type: Meal type the fragment was requested for

    Returns:
        List of DailyMenu objects in document order
    """
    return parse_events(iter_tag_events(html), meal_type)
