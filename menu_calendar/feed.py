"""
RSS feed generator
Creates an RSS 2.0 feed with one entry per school day of a weekly menu
"""

from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import List

import markdown
from feedgen.feed import FeedGenerator

from menu_calendar.models import SCHOOL_DAYS, DailyMeals, Weekday, WeeklyMenu, weekday_name


def day_markdown(meals: DailyMeals) -> str:
    """Markdown body for one day: a heading per meal and a bullet per item"""
    sections = []
    for menu in meals.present():
        bullets = []
        for item in menu.menu_items:
            bullet = f"- {item.description or item.name}"
            if item.is_vegan:
                bullet += " *(vegan)*"
            elif item.is_vegetarian:
                bullet += " *(vegetarian)*"
            bullets.append(bullet)
        sections.append(f"**{menu.meal_type.value.capitalize()}**\n\n" + '\n'.join(bullets))
    return '\n\n'.join(sections)


def create_feed_metadata(school_name: str, link: str = "", description: str = "") -> FeedGenerator:
    """
    Create feed with basic metadata

    Args:
        school_name: Name of the school
        link: Page where the school publishes its menus
        description: Feed description

    Returns:
        FeedGenerator with metadata set
    """
    fg = FeedGenerator()
    fg.title(f'{school_name} Menu')
    fg.description(description or f'Daily breakfast, lunch and snack menus for {school_name}')
    fg.link(href=link or 'https://www.finalsite.com/', rel='alternate')
    fg.language('en')
    fg.generator('School Menu Calendar')
    return fg


def add_day_to_feed(fg: FeedGenerator, school_slug: str, served_on: date, meals: DailyMeals):
    """Add one school day's meals as a feed entry"""
    fe = fg.add_entry()
    fe.title(f"{weekday_name(Weekday(served_on.weekday()))}, {served_on.strftime('%B')} {served_on.day}")
    fe.description(markdown.markdown(day_markdown(meals)))
    fe.guid(f"{school_slug}-{served_on.isoformat()}", permalink=False)
    fe.pubDate(datetime.combine(served_on, time(6, 0), tzinfo=timezone.utc))


def build_feed(weekly_menu: WeeklyMenu, school_name: str, school_slug: str,
               link: str = "", description: str = "") -> FeedGenerator:
    """
    Build the feed for a week, skipping days with no meals

    Returns:
        FeedGenerator with one entry per school day that has meals
    """
    fg = create_feed_metadata(school_name, link, description)

    days: List[date] = sorted({menu.date for menu in weekly_menu.daily_menus
                               if menu.date.weekday() in SCHOOL_DAYS})
    # feedgen reverses entry order on output, so add oldest first
    for served_on in days:
        meals = weekly_menu.meals_by_date(served_on)
        if meals.present():
            add_day_to_feed(fg, school_slug, served_on, meals)

    return fg


def generate_feed(weekly_menu: WeeklyMenu, output_file: str, school_name: str,
                  school_slug: str, link: str = "", description: str = "") -> FeedGenerator:
    """Build the weekly feed and save it to output_file"""
    fg = build_feed(weekly_menu, school_name, school_slug, link, description)

    output_path = Path(output_file)
    output_path.parent.mkdir(exist_ok=True, parents=True)

    fg.rss_file(str(output_path))
    print(f"RSS feed saved to {output_file}")

    return fg
