"""
Menu item classification for the Finalsite calendar widget
Maps event color icons to food categories and cleans up event titles
"""

import html
import re
from typing import Optional, Tuple

from menu_calendar.models import FoodCategory


# Icon background colors used by the district's menu calendars
COLOR_CATEGORIES = {
    "#220AFD": FoodCategory.MAIN_ENTREE,
    "#52B73E": FoodCategory.VEGETARIAN_ENTREE,
    "#000000": FoodCategory.ELEMENTARY_SECONDARY_SECOND_CHOICE,
    "#EFE013": FoodCategory.ELEMENTARY_SECONDARY_SIDE_DISH,
    "#BC0945": FoodCategory.MAIN_ENTREE,
    "#F90303": FoodCategory.AFTERSCHOOL_SNACK,
    "#651594": FoodCategory.PRESCHOOL_SNACK,
    "#247632": FoodCategory.SAC_SNACK,
}

# Calendar entries that are announcements rather than food
ADMIN_PATTERNS = (
    "no school",
    "winter break",
    "last day of school",
    "memorial day",
    "teacher",
    "spring break",
    "quarter ends",
)

_BACKGROUND_RE = re.compile(r'background(?:-color)?\s*:\s*([^;]+)', re.IGNORECASE)

# Only " with " separates the dish from its sides. "&" is part of many names
# ("Chicken & Waffles") and is never a split point.
_WITH_SEPARATOR_RE = re.compile(r'\s+with\s+')


def parse_background_color(style: Optional[str]) -> Optional[str]:
    """
    Extract the background color from an inline style attribute

    Args:
        style: Style attribute text, e.g. "background: #220afd;"

    Returns:
        Uppercased color value or None if the style has no background
    """
    if not style:
        return None

    match = _BACKGROUND_RE.search(style)
    if not match:
        return None

    color = match.group(1).strip().upper()
    return color or None


def category_for_color(color: Optional[str]) -> FoodCategory:
    """Exact lookup in COLOR_CATEGORIES, anything unknown is Other"""
    if not color:
        return FoodCategory.OTHER
    return COLOR_CATEGORIES.get(color, FoodCategory.OTHER)


def decode_title(raw: Optional[str]) -> str:
    """Decode HTML entities left in a title attribute and trim it"""
    if not raw:
        return ""
    return html.unescape(raw).strip()


def is_admin_announcement(text: str) -> bool:
    """Check for school-calendar announcements like "No School" or "Spring Break" """
    lower_text = text.lower()
    return any(pattern in lower_text for pattern in ADMIN_PATTERNS)


def normalize_title(text: str) -> Tuple[str, str]:
    """
    Split a menu entry into dish name and description

    The name is the text before the first " with ". The description is
    always the full text so the sides are kept.

    Args:
        text: Decoded title text

    Returns:
        Tuple of (name, description)
    """
    parts = _WITH_SEPARATOR_RE.split(text, maxsplit=1)
    if len(parts) > 1:
        return parts[0].strip(), text
    return text, text
