"""
Caching utilities for the menu pipeline
Raw calendar fragments and the latest scraped menu per school
"""

import json
import hashlib
import os
from pathlib import Path
from typing import Optional

from menu_calendar.models import MonthlyMenu


# Cache directories
CACHE_ROOT = Path(os.environ.get('MENU_CACHE_DIR', 'cache'))
FRAGMENT_CACHE_DIR = CACHE_ROOT / "fragments"
MENU_CACHE_DIR = CACHE_ROOT / "menus"


# ============================================================================
# Fragment Caching
# ============================================================================

def get_cache_key(url: str) -> str:
    """Generate cache key from URL"""
    return hashlib.md5(url.encode()).hexdigest()


def load_fragment_from_cache(url: str) -> Optional[str]:
    """Load a calendar fragment's HTML from cache if available"""
    FRAGMENT_CACHE_DIR.mkdir(parents=True, exist_ok=True)
    cache_file = FRAGMENT_CACHE_DIR / f"{get_cache_key(url)}.json"

    if not cache_file.exists():
        return None

    try:
        with open(cache_file, 'r', encoding='utf-8') as f:
            cached = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        print(f"    Warning: Ignoring unreadable fragment cache {cache_file}: {e}")
        return None

    return cached.get('html')


def save_fragment_to_cache(url: str, html: str):
    """Save a calendar fragment's HTML to cache"""
    FRAGMENT_CACHE_DIR.mkdir(parents=True, exist_ok=True)
    cache_file = FRAGMENT_CACHE_DIR / f"{get_cache_key(url)}.json"

    cache_data = {
        'url': url,
        'html': html
    }

    with open(cache_file, 'w', encoding='utf-8') as f:
        json.dump(cache_data, f, ensure_ascii=False)


# ============================================================================
# Menu Storage
# ============================================================================

def menu_cache_path(slug: str) -> Path:
    return MENU_CACHE_DIR / f"{slug}.json"


def save_monthly_menu(monthly_menu: MonthlyMenu, slug: str) -> Path:
    """
    Store the latest scraped menu for a school, replacing any previous one

    Args:
        monthly_menu: Menu hierarchy to store
        slug: School slug used as the file name

    Returns:
        Path of the written file
    """
    MENU_CACHE_DIR.mkdir(parents=True, exist_ok=True)
    cache_file = menu_cache_path(slug)

    # Write then rename so readers never see a partial file
    tmp_file = cache_file.with_suffix('.json.tmp')
    with open(tmp_file, 'w', encoding='utf-8') as f:
        json.dump(monthly_menu.to_dict(), f, ensure_ascii=False, indent=2)
    tmp_file.replace(cache_file)

    return cache_file


def load_monthly_menu(slug: str) -> Optional[MonthlyMenu]:
    """
    Load the stored menu for a school

    Returns:
        MonthlyMenu, or None if nothing is stored or the file is unreadable
    """
    cache_file = menu_cache_path(slug)
    if not cache_file.exists():
        return None

    try:
        with open(cache_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return MonthlyMenu.from_dict(data)
    except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError) as e:
        print(f"Warning: Error parsing menu data in {cache_file}: {e}")
        return None
