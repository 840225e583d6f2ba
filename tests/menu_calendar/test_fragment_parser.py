"""
Tests for menu_calendar.fragment_parser module
"""

import pytest
from datetime import date
from menu_calendar.fragment_parser import (
    FragmentParser,
    TagEvent,
    iter_daily_menus,
    iter_tag_events,
    parse_date_components,
    parse_events,
    parse_fragment,
)
from menu_calendar.models import FoodCategory, MealType


def day_box(weekend=False):
    classes = ['fsCalendarDaybox', 'fsStateHasEvents']
    if weekend:
        classes.append('fsCalendarWeekendDayBox')
    return TagEvent.create('div', classes)


def date_el(day, month, year):
    return TagEvent.create('div', ['fsCalendarDate'], **{
        'data-day': str(day), 'data-month': str(month), 'data-year': str(year)
    })


def info():
    return TagEvent.create('div', ['fsCalendarInfo'])


def icon(color):
    return TagEvent.create('span', ['fsElementEventColorIcon'], style=f"background: {color};")


def title(text):
    return TagEvent.create('a', ['fsCalendarEventTitle', 'fsCalendarEventLink'], title=text)


def item(text, color="#220AFD"):
    return [info(), icon(color), title(text)]


SAMPLE_FRAGMENT = """
<div class="fsCalendar">
  <div class="fsCalendarDaybox fsCalendarWeekendDayBox">
    <div class="fsCalendarDate" data-day="30" data-month="2" data-year="2025"></div>
    <div class="fsCalendarInfo">
      <span class="fsElementEventColorIcon" style="background: #220afd;"></span>
      <a class="fsCalendarEventTitle" title="Weekend Brunch">Weekend Brunch</a>
    </div>
  </div>
  <div class="fsCalendarDaybox fsStateHasEvents">
    <div class="fsCalendarDate" data-day="31" data-month="2" data-year="2025"><span>31</span></div>
    <div class="fsCalendarInfo">
      <span class="fsElementEventColorIcon" style="background: #220afd;"></span>
      <a class="fsCalendarEventTitle" title="Chicken &amp;amp; Waffles with Syrup">Chicken &amp; Waffles</a>
    </div>
    <div class="fsCalendarInfo">
      <span class="fsElementEventColorIcon" style="background: #52B73E;"></span>
      <a class="fsCalendarEventTitle" title="Vegan Corn &amp; Chile Tamales with Refried Beans">Tamales</a>
    </div>
  </div>
  <div class="fsCalendarDaybox">
    <div class="fsCalendarDate" data-day="1" data-month="3" data-year="2025"></div>
    <div class="fsCalendarInfo">
      <span class="fsElementEventColorIcon" style="background: #999999;"></span>
      <a class="fsCalendarEventTitle" title="Teacher Workday - No School">Teacher Workday</a>
    </div>
    <div class="fsCalendarInfo">
      <span class="fsElementEventColorIcon" style="background: #EFE013;"></span>
      <a class="fsCalendarEventTitle" title="Baby Carrots">Baby Carrots</a>
    </div>
  </div>
  <div class="fsCalendarDaybox fsCalendarOutOfRange">
    <div class="fsCalendarDate" data-day="0" data-month="3" data-year="2025"></div>
    <div class="fsCalendarInfo">
      <a class="fsCalendarEventTitle" title="Orphan Item">Orphan Item</a>
    </div>
  </div>
</div>
"""


class TestDateComponents:
    """Tests for zero-based month date resolution"""

    def test_zero_based_month(self):
        assert parse_date_components("15", "2", "2025") == date(2025, 3, 15)
        assert parse_date_components("1", "0", "2024") == date(2024, 1, 1)
        assert parse_date_components("31", "11", "2023") == date(2023, 12, 31)

    @pytest.mark.parametrize("day,month,year", [
        ("0", "2", "2025"),
        ("15", "2", "0"),
        ("15", "-1", "2025"),
        ("", "2", "2025"),
        ("abc", "2", "2025"),
        ("31", "1", "2025"),  # February 31st
    ])
    def test_invalid_components(self, day, month, year):
        assert parse_date_components(day, month, year) is None

    @pytest.mark.parametrize("day,month,year,expected", [
        ("3.0", "0", "2024", date(2024, 1, 3)),
        ("2abc", "0", "2024", date(2024, 1, 2)),
        (" 15", "2px", "2025.0", date(2025, 3, 15)),
    ])
    def test_leading_digits(self, day, month, year, expected):
        """Test components are read from their leading digits like the widget script does"""
        assert parse_date_components(day, month, year) == expected


class TestFragmentParserStateMachine:
    """Tests for day and item accumulation over replayed events"""

    def test_single_day(self):
        events = [day_box(), date_el(3, 0, 2024), *item("Cheese Pizza with Salad"),
                  *item("Veggie Wrap", "#52B73E")]

        menus = parse_events(events, MealType.LUNCH)

        assert len(menus) == 1
        menu = menus[0]
        assert menu.date == date(2024, 1, 3)
        assert menu.meal_type == MealType.LUNCH
        assert [i.name for i in menu.menu_items] == ["Cheese Pizza", "Veggie Wrap"]
        assert menu.menu_items[0].description == "Cheese Pizza with Salad"
        assert menu.menu_items[0].category == FoodCategory.MAIN_ENTREE
        assert menu.menu_items[1].category == FoodCategory.VEGETARIAN_ENTREE
        assert menu.menu_items[1].is_vegetarian is True

    def test_day_completes_on_next_day_box(self):
        """Test a day is emitted when the next day box opens, not before"""
        parser = FragmentParser(MealType.BREAKFAST)
        for event in [day_box(), date_el(1, 0, 2024), *item("Waffles")]:
            assert parser.feed(event) is None

        completed = parser.feed(day_box())

        assert completed is not None
        assert completed.date == date(2024, 1, 1)
        assert parser.close() == [completed]

    def test_last_day_flushed_at_end(self):
        parser = FragmentParser(MealType.LUNCH)
        parser.feed_all([day_box(), date_el(2, 0, 2024), *item("Tacos")])

        menus = parser.close()

        assert [m.date for m in menus] == [date(2024, 1, 2)]

    def test_close_is_idempotent_and_final(self):
        parser = FragmentParser(MealType.LUNCH)
        parser.feed_all([day_box(), date_el(2, 0, 2024), *item("Tacos")])

        assert len(parser.close()) == 1
        assert len(parser.close()) == 1
        with pytest.raises(RuntimeError):
            parser.feed(day_box())

    def test_invalid_date_drops_day(self):
        events = [day_box(), date_el(0, 0, 2024), *item("Tacos"),
                  day_box(), date_el(5, 0, 0), *item("Pizza")]
        assert parse_events(events, MealType.LUNCH) == []

    def test_missing_date_drops_day(self):
        assert parse_events([day_box(), *item("Tacos")], MealType.LUNCH) == []

    def test_day_without_items_dropped(self):
        events = [day_box(), date_el(2, 0, 2024), day_box(), date_el(3, 0, 2024), *item("Tacos")]
        menus = parse_events(events, MealType.LUNCH)
        assert [m.date for m in menus] == [date(2024, 1, 3)]

    def test_weekend_box_contributes_nothing(self):
        """Test weekend day boxes are skipped regardless of content"""
        events = [day_box(weekend=True), date_el(6, 0, 2024), *item("Brunch"),
                  day_box(weekend=True), date_el(7, 0, 2024), *item("Brunch")]
        assert parse_events(events, MealType.LUNCH) == []

    def test_weekend_box_does_not_swallow_friday(self):
        """Test the weekday before a weekend box is still completed"""
        events = [day_box(), date_el(5, 0, 2024), *item("Fish Sticks"),
                  day_box(weekend=True), date_el(6, 0, 2024), *item("Brunch"),
                  day_box(), date_el(8, 0, 2024), *item("Tacos")]

        menus = parse_events(events, MealType.LUNCH)

        assert [m.date for m in menus] == [date(2024, 1, 5), date(2024, 1, 8)]
        assert [i.name for i in menus[0].menu_items] == ["Fish Sticks"]

    def test_admin_item_dropped_without_corrupting_next(self):
        """Test an announcement is dropped and the following item is intact"""
        events = [day_box(), date_el(2, 0, 2024),
                  info(), icon("#220AFD"), title("No School - Teacher Workday"),
                  info(), icon("#EFE013"), title("Apple Slices")]

        menus = parse_events(events, MealType.LUNCH)

        assert len(menus) == 1
        assert [i.name for i in menus[0].menu_items] == ["Apple Slices"]
        assert menus[0].menu_items[0].category == FoodCategory.ELEMENTARY_SECONDARY_SIDE_DISH

    def test_day_of_only_announcements_dropped(self):
        events = [day_box(), date_el(25, 11, 2023), *item("Winter Break")]
        assert parse_events(events, MealType.LUNCH) == []

    def test_item_without_title_dropped(self):
        events = [day_box(), date_el(2, 0, 2024), info(), icon("#220AFD"), *item("Tacos")]
        menus = parse_events(events, MealType.LUNCH)
        assert [i.name for i in menus[0].menu_items] == ["Tacos"]

    def test_unknown_color_is_other(self):
        events = [day_box(), date_el(2, 0, 2024), *item("Milk", "#ABCDEF")]
        menus = parse_events(events, MealType.SNACK)
        assert menus[0].menu_items[0].category == FoodCategory.OTHER

    def test_items_outside_day_box_ignored(self):
        events = [*item("Stray Item"), day_box(), date_el(2, 0, 2024), *item("Tacos")]
        menus = parse_events(events, MealType.LUNCH)
        assert [i.name for i in menus[0].menu_items] == ["Tacos"]

    def test_unrelated_tags_ignored(self):
        events = [day_box(), TagEvent.create('span'), date_el(2, 0, 2024),
                  TagEvent.create('div', ['fsCalendarEventTitle']), *item("Tacos")]
        menus = parse_events(events, MealType.LUNCH)
        assert len(menus) == 1

    def test_iter_daily_menus_is_lazy(self):
        """Test days are yielded as soon as they complete"""
        events = [day_box(), date_el(1, 0, 2024), *item("Waffles"),
                  day_box(), date_el(2, 0, 2024), *item("Pancakes")]

        generator = iter_daily_menus(iter(events), MealType.BREAKFAST)
        first = next(generator)

        assert first.date == date(2024, 1, 1)
        assert [m.date for m in generator] == [date(2024, 1, 2)]


class TestParseFragmentHtml:
    """Tests for parsing real widget markup"""

    def test_tag_events_in_document_order(self):
        events = list(iter_tag_events(SAMPLE_FRAGMENT))

        assert events[0].tag == 'div' and events[0].has_class('fsCalendar')
        day_boxes = [e for e in events if e.has_class('fsCalendarDaybox')]
        assert len(day_boxes) == 4
        assert day_boxes[0].has_class('fsCalendarWeekendDayBox')
        assert events[2].get('data-day') == "30"

    def test_parse_sample_fragment(self):
        menus = parse_fragment(SAMPLE_FRAGMENT, MealType.LUNCH)

        assert [m.date for m in menus] == [date(2025, 3, 31), date(2025, 4, 1)]

        monday = menus[0]
        assert [i.name for i in monday.menu_items] == ["Chicken & Waffles", "Vegan Corn & Chile Tamales"]
        assert monday.menu_items[0].description == "Chicken & Waffles with Syrup"
        assert monday.menu_items[0].category == FoodCategory.MAIN_ENTREE
        assert monday.menu_items[1].is_vegan is True
        assert monday.menu_items[1].category == FoodCategory.VEGETARIAN_ENTREE

        tuesday = menus[1]
        assert [i.name for i in tuesday.menu_items] == ["Baby Carrots"]

    def test_empty_fragment(self):
        assert parse_fragment("", MealType.LUNCH) == []
        assert parse_fragment("<div>No events</div>", MealType.LUNCH) == []
