"""
Weekly menu markup for e-ink dashboard layouts
Renders a Monday-Friday table of breakfast, lunch and snack from Jinja2 templates
"""

from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader
from markupsafe import Markup

from menu_calendar.models import SCHOOL_DAYS, DailyMeals, WeeklyMenu, weekday_name


TEMPLATE_DIR = Path(__file__).parent / 'templates'

env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=True, trim_blocks=True)


def render_day_cell(meals: DailyMeals) -> Markup:
    """Sections for each meal that has items, in breakfast/lunch/snack order"""
    macros = env.get_template('_macros.html').module
    return macros.meal_sections(meals.present())


def _school_days(weekly_menu: WeeklyMenu) -> List[Dict]:
    return [
        {'name': weekday_name(day), 'cell': render_day_cell(weekly_menu.meals_by_weekday(day))}
        for day in SCHOOL_DAYS
    ]


def render_weekly_markup(weekly_menu: WeeklyMenu, title: str) -> str:
    """
    Full-screen layout: one column per school day

    Args:
        weekly_menu: Week to render
        title: Text for the title bar

    Returns:
        HTML markup string
    """
    template = env.get_template('weekly.html')
    return template.render(days=_school_days(weekly_menu), title=title)


def render_compact_markup(title: str) -> str:
    """Title-only layout used by the smaller dashboard sizes"""
    return env.get_template('compact.html').render(title=title)


def render_markup_variants(weekly_menu: WeeklyMenu, title: str) -> Dict[str, str]:
    """Markup for every dashboard layout size"""
    compact = render_compact_markup(title)
    return {
        'markup': render_weekly_markup(weekly_menu, title),
        'markup_half_horizontal': compact,
        'markup_half_vertical': compact,
        'markup_quadrant': compact,
    }
