#!/usr/bin/env python3
"""
Menu Calendar Pipeline
Scrapes school menu calendars and publishes the current week as JSON, ICS, RSS and markup
"""

import sys
import json
import argparse
import time
from datetime import date
from pathlib import Path
from typing import List, Optional

import requests

from menu_calendar.models import WeeklyMenu
from menu_calendar.scraper import School


def load_schools(schools_file: Optional[Path] = None) -> List[School]:
    """Load school configurations from schools.json"""
    schools_file = schools_file or Path(__file__).parent.parent / "schools.json"
    with open(schools_file, 'r', encoding='utf-8') as f:
        return [School.from_dict(entry) for entry in json.load(f)]


def parse_date_arg(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date format: {value}. Use YYYY-MM-DD")


def write_markup(weekly_menu: WeeklyMenu, school: School, output_dir: Path) -> Path:
    """Save the dashboard markup variants for a week as <slug>-markup.json"""
    from menu_calendar.markup import render_markup_variants

    markup_path = output_dir / f"{school.slug}-markup.json"
    with open(markup_path, 'w', encoding='utf-8') as f:
        json.dump(render_markup_variants(weekly_menu, f"{school.name} Menu"), f, indent=2)
    print(f"Markup saved to {markup_path}")
    return markup_path


def render_from_store(school: School, target_date: date, output_dir: Path) -> int:
    """
    Render markup from the last stored menu without scraping

    Args:
        school: School configuration
        target_date: Reference date used to pick the week
        output_dir: Output directory path

    Returns:
        Exit code (0 for success, 1 if nothing is stored or no week matches)
    """
    from common.cache import load_monthly_menu

    print(f"\nRendering stored menu: {school.name} ({target_date.isoformat()})")

    monthly_menu = load_monthly_menu(school.slug)
    if not monthly_menu:
        print(f"Error: No stored menu for {school.slug}, run a scrape first")
        return 1

    weekly_menu = monthly_menu.weekly_menu_for_date(target_date)
    if not weekly_menu:
        print(f"Error: No weekly menu found for {target_date.isoformat()}")
        return 1

    print(f"  Week {weekly_menu.start_date.isoformat()} to {weekly_menu.end_date.isoformat()}")
    write_markup(weekly_menu, school, output_dir)
    return 0


def process_school(school: School, target_date: date, output_dir: Path, use_cache: bool = False,
                   scheduled: bool = False) -> int:
    """
    Scrape and publish one school's menus

    Args:
        school: School configuration
        target_date: Reference date for the calendar window and the week shown
        output_dir: Output directory path
        use_cache: Reuse cached calendar fragments
        scheduled: Pick the fetch window and week the way a scheduled run does

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    print(f"\n{'=' * 70}")
    print(f"Processing: {school.name} ({target_date.isoformat()})")
    print(f"{'=' * 70}")

    try:
        # Step 1: Scrape all meal calendars
        print(f"\n[1/5] Scraping menu calendars for {school.name}...")
        start_time = time.time()
        from menu_calendar import scraper
        with requests.Session() as session:
            if scheduled:
                monthly_menu = scraper.fetch_menu_for_scheduled_run(school, target_date, session=session,
                                                                    use_cache=use_cache, delay=1.0)
            else:
                monthly_menu = scraper.fetch_all_meals_for_date(school, target_date, session=session,
                                                                use_cache=use_cache, delay=1.0)
        elapsed = time.time() - start_time
        print(f"  ⏱️  Scraping took {elapsed:.2f}s")

        if not monthly_menu:
            print("Error: No menu data found!")
            return 1

        daily_menus = monthly_menu.all_daily_menus()
        print(f"  {len(daily_menus)} daily menus in {len(monthly_menu.weekly_menus)} weeks")

        # Step 2: Store the scraped menu
        print("\n[2/5] Saving menu data...")
        from common.cache import save_monthly_menu
        menu_path = save_monthly_menu(monthly_menu, school.slug)
        json_path = output_dir / f"{school.slug}-menu.json"
        with open(json_path, 'w', encoding='utf-8') as f:
            json.dump(monthly_menu.to_dict(), f, indent=2, ensure_ascii=False)
        print(f"Menu saved to {menu_path} and {json_path}")

        # Step 3: Pick the week to publish
        print("\n[3/5] Resolving week...")
        if scheduled:
            weekly_menu = scraper.scheduled_week(monthly_menu, target_date)
        else:
            weekly_menu = monthly_menu.weekly_menu_for_date(target_date)
        if not weekly_menu:
            print(f"Warning: No weekly menu found for {target_date.isoformat()}")
        else:
            print(f"  Week {weekly_menu.start_date.isoformat()} to {weekly_menu.end_date.isoformat()} "
                  f"({len(weekly_menu.daily_menus)} daily menus)")

        # Step 4: Generate calendar file for everything scraped
        print("\n[4/5] Generating ICS calendar...")
        from menu_calendar.calendar_export import write_ics
        ics_path = output_dir / f"{school.slug}-menu.ics"
        write_ics(daily_menus, str(ics_path), f"{school.name} Menu", calendar_slug=school.slug)

        # Step 5: Weekly feed and dashboard markup
        print("\n[5/5] Generating RSS feed and markup...")
        if weekly_menu:
            from menu_calendar.feed import generate_feed
            feed_path = output_dir / f"{school.slug}-feed.rss"
            generate_feed(weekly_menu, str(feed_path), school.name, school.slug,
                          link=school.referer, description=school.description)
            write_markup(weekly_menu, school, output_dir)
        else:
            print("  Skipped: no week to publish")

        print("\n" + "=" * 50)
        print("Success!")
        print(f"  JSON data: {json_path}")
        print(f"  ICS calendar: {ics_path}")
        print(f"  Total daily menus: {len(daily_menus)}")
        print("=" * 50)

        return 0

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130
    except ValueError as e:
        print(f"\n\nConfiguration Error: {e}")
        return 1
    except Exception as e:
        print(f"\n\nError: {e}")
        import traceback
        traceback.print_exc()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for menu calendar pipeline"""
    parser = argparse.ArgumentParser(description='Scrape school menu calendars and publish weekly menus')
    parser.add_argument('--school', type=str, help='Process only the specified school slug (e.g., "cve")')
    parser.add_argument('--date', type=parse_date_arg, default=None,
                        help='Reference date in YYYY-MM-DD format (default: today)')
    parser.add_argument('--output', type=str, default='output', help='Output directory (default: output)')
    parser.add_argument('--schools-file', type=str, default=None, help='Path to schools.json')
    parser.add_argument('--use-cache', action='store_true', help='Reuse cached calendar fragments')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--scheduled', action='store_true',
                      help='Scheduled run: on weekends fetch a week ahead and publish next week')
    mode.add_argument('--from-store', action='store_true',
                      help='Render markup from the stored menu without scraping')
    args = parser.parse_args(argv)

    try:
        schools = load_schools(Path(args.schools_file) if args.schools_file else None)
    except (OSError, ValueError) as e:
        print(f"Configuration Error: {e}")
        return 1

    if args.school:
        available = schools
        schools = [s for s in schools if s.slug == args.school]
        if not schools:
            print(f"Error: School '{args.school}' not found in schools.json")
            print(f"Available schools: {', '.join(s.slug for s in available)}")
            return 1

    target_date = args.date or date.today()

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    exit_codes = []
    for school in schools:
        if args.from_store:
            exit_code = render_from_store(school, target_date, output_dir)
        else:
            exit_code = process_school(school, target_date, output_dir, use_cache=args.use_cache,
                                       scheduled=args.scheduled)
        exit_codes.append(exit_code)

    # Return non-zero if any school failed
    return max(exit_codes) if exit_codes else 0


if __name__ == "__main__":
    sys.exit(main())
