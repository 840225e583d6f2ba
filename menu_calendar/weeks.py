"""
Week bucketing and week resolution
Groups daily menus into Monday-Sunday weeks and picks the week to show for a date
"""

from datetime import date, timedelta
from typing import Iterable, List, Optional

from menu_calendar.models import MEAL_ORDER, DailyMenu, MonthlyMenu, Weekday, WeeklyMenu


def week_start(target_date: date) -> date:
    """Monday on or before target_date"""
    return target_date - timedelta(days=target_date.weekday())


def week_end(target_date: date) -> date:
    """Sunday on or after target_date"""
    return week_start(target_date) + timedelta(days=6)


def _sort_key(daily_menu: DailyMenu):
    return daily_menu.date, MEAL_ORDER.index(daily_menu.meal_type)


def group_daily_menus_by_week(daily_menus: Iterable[DailyMenu]) -> List[WeeklyMenu]:
    """
    Group daily menus into Monday-Sunday weeks

    Input order does not matter. Only weeks that have at least one daily
    menu are returned; missing weeks are not filled in.

    Args:
        daily_menus: Daily menus in any order, any meal types

    Returns:
        WeeklyMenu list sorted by start date
    """
    sorted_menus = sorted(daily_menus, key=_sort_key)

    weekly_menus = []
    current_start = None
    current_menus: List[DailyMenu] = []

    for daily_menu in sorted_menus:
        start = week_start(daily_menu.date)

        if start != current_start:
            if current_menus:
                weekly_menus.append(WeeklyMenu(
                    start_date=current_start,
                    end_date=week_end(current_start),
                    daily_menus=current_menus,
                ))
            current_start = start
            current_menus = []

        current_menus.append(daily_menu)

    if current_menus:
        weekly_menus.append(WeeklyMenu(
            start_date=current_start,
            end_date=week_end(current_start),
            daily_menus=current_menus,
        ))

    return weekly_menus


def build_monthly_menu(daily_menus: Iterable[DailyMenu], year: int, month: int) -> MonthlyMenu:
    """
    Build the menu hierarchy from a flat list of daily menus

    Args:
        daily_menus: Daily menus for any meal types, in any order
        year: Year label for the monthly menu
        month: Month label (1-12) for the monthly menu

    Returns:
        MonthlyMenu holding one WeeklyMenu per week present
    """
    return MonthlyMenu(year=year, month=month, weekly_menus=group_daily_menus_by_week(daily_menus))


def is_weekend(target_date: date) -> bool:
    return target_date.weekday() >= Weekday.SATURDAY


def resolution_date(target_date: date) -> date:
    """
    Date whose week applies to target_date

    Weekdays map to themselves. Saturday and Sunday roll forward to the
    next Monday, so the coming week is shown over the weekend.
    """
    if is_weekend(target_date):
        return target_date + timedelta(days=7 - target_date.weekday())
    return target_date


def find_weekly_menu(weekly_menus: Iterable[WeeklyMenu], target_date: date) -> Optional[WeeklyMenu]:
    """
    Resolve the week that applies to a date

    Weekdays resolve to the week containing them. Weekends resolve to the
    first week starting on or after the next Monday.

    Args:
        weekly_menus: Candidate weeks
        target_date: Reference date (passed explicitly, never read from the clock)

    Returns:
        WeeklyMenu or None if no week matches
    """
    if is_weekend(target_date):
        next_monday = resolution_date(target_date)
        following = [week for week in weekly_menus if week.start_date >= next_monday]
        if not following:
            return None
        return min(following, key=lambda week: week.start_date)

    return next((week for week in weekly_menus if week.contains(target_date)), None)


def scheduled_target_date(today: date) -> date:
    """
    Date a scheduled scrape should fetch for

    On weekdays this is today. On weekends it is a week ahead, so the
    scrape lands in next week's calendar window.
    """
    if is_weekend(today):
        return today + timedelta(days=7)
    return today
