"""
Finalsite calendar menu scraper
Fetches per-meal-type calendar fragments over the widget's AJAX endpoint
"""

import time
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

import requests

from common.cache import load_fragment_from_cache, save_fragment_to_cache
from menu_calendar.fragment_parser import parse_fragment
from menu_calendar.models import MEAL_ORDER, DailyMenu, MealType, MonthlyMenu, WeeklyMenu
from menu_calendar.weeks import build_monthly_menu, scheduled_target_date


REQUEST_TIMEOUT = 15

REQUEST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass
class School:
    """A school's menu calendar widget, as configured in schools.json"""
    name: str
    slug: str
    ajax_base_url: str
    page_id: str
    endpoints: Dict[MealType, str] = field(default_factory=dict)
    referer: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: Dict) -> 'School':
        """
        Build a School from its schools.json entry

        Raises:
            ValueError: If a required key is missing or a meal type is unknown
        """
        missing = [key for key in ('name', 'slug', 'ajax_base_url', 'page_id', 'endpoints') if not data.get(key)]
        if missing:
            raise ValueError(f"School config {data.get('slug', '?')!r} is missing: {', '.join(missing)}")

        return cls(
            name=data['name'],
            slug=data['slug'],
            ajax_base_url=data['ajax_base_url'].rstrip('/'),
            page_id=str(data['page_id']),
            endpoints={MealType(meal): str(element_id) for meal, element_id in data['endpoints'].items()},
            referer=data.get('referer', ''),
            description=data.get('description', ''),
        )


def build_fragment_url(school: School, meal_type: MealType, target_date: date) -> Optional[str]:
    """
    Build the AJAX URL for one meal type's calendar around a date

    Returns:
        Full URL with query string, or None if the school has no calendar for meal_type
    """
    element_id = school.endpoints.get(MealType(meal_type))
    if not element_id:
        return None

    params = {
        'cal_date': target_date.isoformat(),
        'is_draft': 'false',
        'is_load_more': 'true',
        'page_id': school.page_id,
        'parent_id': element_id,
        '_': '0',
    }
    request = requests.Request('GET', f"{school.ajax_base_url}/{element_id}", params=params).prepare()
    return request.url


def fetch_fragment(url: str, referer: str = "", session: Optional[requests.Session] = None,
                   use_cache: bool = False) -> str:
    """
    Download a calendar fragment

    Args:
        url: Fragment URL from build_fragment_url
        referer: Page the widget is embedded in
        session: Optional requests session to reuse connections
        use_cache: Read and write the on-disk fragment cache

    Returns:
        Fragment HTML text

    Raises:
        requests.RequestException: On connection errors or non-2xx responses
    """
    if use_cache:
        cached = load_fragment_from_cache(url)
        if cached is not None:
            print(f"  Fetching: {url} (from cache)")
            return cached

    print(f"  Fetching: {url}")
    headers = dict(REQUEST_HEADERS)
    if referer:
        headers['Referer'] = referer

    http = session or requests
    response = http.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    html = response.text

    if use_cache:
        save_fragment_to_cache(url, html)

    return html


def fetch_menu_for_date(school: School, target_date: date, meal_type: MealType,
                        session: Optional[requests.Session] = None,
                        use_cache: bool = False) -> Optional[List[DailyMenu]]:
    """
    Fetch and parse one meal type's calendar around a date

    Returns:
        List of DailyMenu (possibly empty), or None if the fetch failed
    """
    url = build_fragment_url(school, meal_type, target_date)
    if not url:
        print(f"  Unsupported meal type for {school.name}: {MealType(meal_type).value}")
        return None

    try:
        html = fetch_fragment(url, school.referer, session=session, use_cache=use_cache)
    except requests.RequestException as e:
        print(f"  Error fetching {MealType(meal_type).value} menu: {e}")
        return None

    return parse_fragment(html, meal_type)


def fetch_all_meals_for_date(school: School, target_date: date,
                             session: Optional[requests.Session] = None,
                             use_cache: bool = False,
                             delay: float = 0.0) -> Optional[MonthlyMenu]:
    """
    Fetch breakfast, lunch and snack calendars and build the menu hierarchy

    Args:
        school: School to scrape
        target_date: Date whose calendar window is fetched
        session: Optional requests session
        use_cache: Use the on-disk fragment cache
        delay: Seconds to wait between requests

    Returns:
        MonthlyMenu labelled with target_date's year and month, or None if
        no daily menus were found
    """
    all_daily_menus = []
    failures = 0

    for i, meal_type in enumerate(MEAL_ORDER):
        if i and delay:
            time.sleep(delay)

        daily_menus = fetch_menu_for_date(school, target_date, meal_type, session=session, use_cache=use_cache)
        if daily_menus is None:
            failures += 1
            continue

        print(f"  Parsed {len(daily_menus)} {meal_type.value} days")
        all_daily_menus.extend(daily_menus)

    if failures:
        print(f"  Warning: {failures} of {len(MEAL_ORDER)} meal calendars could not be fetched")

    if not all_daily_menus:
        return None

    return build_monthly_menu(all_daily_menus, year=target_date.year, month=target_date.month)


def fetch_menu_for_scheduled_run(school: School, today: date,
                                 session: Optional[requests.Session] = None,
                                 use_cache: bool = False,
                                 delay: float = 0.0) -> Optional[MonthlyMenu]:
    """
    Fetch the calendar window a scheduled run should publish from

    Weekdays fetch around today, weekends a week ahead so next week's days
    are inside the window even when it starts in the following month.

    Args:
        school: School to scrape
        today: Reference date for the run

    Returns:
        MonthlyMenu labelled with the fetch target's month, or None if there is no data
    """
    target_date = scheduled_target_date(today)
    if target_date != today:
        print(f"  Weekend run: fetching for {target_date.isoformat()}")

    monthly_menu = fetch_all_meals_for_date(school, target_date, session=session,
                                            use_cache=use_cache, delay=delay)
    if not monthly_menu:
        print(f"  No menu data found for target date: {target_date.isoformat()}")
    return monthly_menu


def scheduled_week(monthly_menu: MonthlyMenu, today: date) -> Optional[WeeklyMenu]:
    """Week containing the scheduled run's fetch target, or None"""
    target_date = scheduled_target_date(today)
    return next((week for week in monthly_menu.weekly_menus if week.contains(target_date)), None)
