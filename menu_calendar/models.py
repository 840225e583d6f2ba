"""
Data models for school meal menus
Menu items, daily menus, Monday-Sunday weekly menus and monthly menus
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum, IntEnum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    SNACK = "snack"


MEAL_ORDER = (MealType.BREAKFAST, MealType.LUNCH, MealType.SNACK)


class FoodCategory(str, Enum):
    MAIN_ENTREE = "Main Entree"
    VEGETARIAN_ENTREE = "Vegetarian Entree"
    ELEMENTARY_SECONDARY_SECOND_CHOICE = "Elementary/Secondary Second Choice Entree"
    ELEMENTARY_SECONDARY_SIDE_DISH = "Elementary/Secondary Side Dish"
    AFTERSCHOOL_SNACK = "Afterschool Snack"
    PRESCHOOL_SNACK = "Preschool"
    SAC_SNACK = "SAC"
    OTHER = "Other"


class Weekday(IntEnum):
    """Day of week, numbered like date.weekday()"""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


SCHOOL_DAYS = (Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY,
               Weekday.THURSDAY, Weekday.FRIDAY)

_WEEKDAY_ALIASES = {
    'monday': Weekday.MONDAY, 'mon': Weekday.MONDAY,
    'tuesday': Weekday.TUESDAY, 'tue': Weekday.TUESDAY, 'tues': Weekday.TUESDAY,
    'wednesday': Weekday.WEDNESDAY, 'wed': Weekday.WEDNESDAY,
    'thursday': Weekday.THURSDAY, 'thu': Weekday.THURSDAY, 'thurs': Weekday.THURSDAY,
    'friday': Weekday.FRIDAY, 'fri': Weekday.FRIDAY,
    'saturday': Weekday.SATURDAY, 'sat': Weekday.SATURDAY,
    'sunday': Weekday.SUNDAY, 'sun': Weekday.SUNDAY,
}


def weekday_from_name(name: str) -> Optional[Weekday]:
    """Map an English weekday name or abbreviation ("Tues", "friday") to a Weekday"""
    return _WEEKDAY_ALIASES.get((name or '').strip().lower())


def weekday_name(weekday: Weekday) -> str:
    """Readable name for a Weekday, e.g. "Monday" """
    return Weekday(weekday).name.capitalize()


VEGAN_TERMS = ("vegan", "plant forward", "plant-based")
VEGETARIAN_TERMS = ("vegetarian", "veggie", "tofu", "bean", "lentil")


def _parse_date(value: Union[str, date]) -> date:
    """Accept a date or a YYYY-MM-DD string"""
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def _format_date(value: date) -> str:
    return value.strftime('%Y-%m-%d')


@dataclass(frozen=True)
class MenuItem:
    """
    A single food offering

    is_vegetarian and is_vegan are inferred from the name when they are not
    given explicitly. A vegan item is always vegetarian. description is the
    full menu text and falls back to the name.
    """
    name: str
    description: Optional[str] = None
    category: FoodCategory = FoodCategory.OTHER
    is_vegetarian: Optional[bool] = None
    is_vegan: Optional[bool] = None
    allergens: Tuple[str, ...] = ()
    nutritional_info: Dict[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        name_lower = self.name.lower()

        is_vegan = self.is_vegan
        if is_vegan is None:
            is_vegan = any(term in name_lower for term in VEGAN_TERMS)

        is_vegetarian = self.is_vegetarian
        if is_vegetarian is None:
            is_vegetarian = any(term in name_lower for term in VEGETARIAN_TERMS)
        is_vegetarian = is_vegetarian or is_vegan

        # frozen dataclass: assign derived fields directly
        object.__setattr__(self, 'description', self.description or self.name)
        object.__setattr__(self, 'category', FoodCategory(self.category))
        object.__setattr__(self, 'is_vegan', bool(is_vegan))
        object.__setattr__(self, 'is_vegetarian', bool(is_vegetarian))
        object.__setattr__(self, 'allergens', tuple(self.allergens))
        object.__setattr__(self, 'nutritional_info', dict(self.nutritional_info))

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'description': self.description,
            'category': self.category.value,
            'isVegetarian': self.is_vegetarian,
            'isVegan': self.is_vegan,
            'allergens': list(self.allergens),
            'nutritionalInfo': dict(self.nutritional_info),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'MenuItem':
        # Absent flags stay None so __post_init__ infers them again
        return cls(
            name=data['name'],
            description=data.get('description'),
            category=FoodCategory(data.get('category') or FoodCategory.OTHER),
            is_vegetarian=data.get('isVegetarian'),
            is_vegan=data.get('isVegan'),
            allergens=tuple(data.get('allergens') or ()),
            nutritional_info=data.get('nutritionalInfo') or {},
        )


@dataclass
class DailyMenu:
    """One meal type served on one calendar date"""
    date: date
    meal_type: MealType
    menu_items: List[MenuItem] = field(default_factory=list)
    special_notes: List[str] = field(default_factory=list)
    is_school_day: bool = True

    def __post_init__(self):
        self.date = _parse_date(self.date)
        self.meal_type = MealType(self.meal_type)

    def add_menu_item(self, item: MenuItem):
        self.menu_items.append(item)

    def items_by_category(self, category: FoodCategory) -> List[MenuItem]:
        return [item for item in self.menu_items if item.category == category]

    def vegetarian_items(self) -> List[MenuItem]:
        return [item for item in self.menu_items if item.is_vegetarian]

    def vegan_items(self) -> List[MenuItem]:
        return [item for item in self.menu_items if item.is_vegan]

    @property
    def weekday(self) -> Weekday:
        return Weekday(self.date.weekday())

    def to_dict(self) -> Dict:
        return {
            'date': _format_date(self.date),
            'mealType': self.meal_type.value,
            'menuItems': [item.to_dict() for item in self.menu_items],
            'specialNotes': list(self.special_notes),
            'isSchoolDay': self.is_school_day,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'DailyMenu':
        is_school_day = data.get('isSchoolDay')
        return cls(
            date=_parse_date(data['date']),
            meal_type=MealType(data['mealType']),
            menu_items=[MenuItem.from_dict(item) for item in data.get('menuItems') or []],
            special_notes=list(data.get('specialNotes') or []),
            is_school_day=True if is_school_day is None else bool(is_school_day),
        )


class DailyMeals(NamedTuple):
    """Breakfast, lunch and snack for one day, any of which may be missing"""
    breakfast: Optional[DailyMenu] = None
    lunch: Optional[DailyMenu] = None
    snack: Optional[DailyMenu] = None

    def present(self) -> List[DailyMenu]:
        """Meals that exist and have at least one item, in serving order"""
        return [menu for menu in self if menu is not None and menu.menu_items]


def _meals_from(menus: List[DailyMenu]) -> DailyMeals:
    found = {}
    for menu in menus:
        found.setdefault(menu.meal_type, menu)
    return DailyMeals(
        breakfast=found.get(MealType.BREAKFAST),
        lunch=found.get(MealType.LUNCH),
        snack=found.get(MealType.SNACK),
    )


def _require_school_day(weekday: Weekday) -> Weekday:
    weekday = Weekday(weekday)
    if weekday not in SCHOOL_DAYS:
        raise ValueError(f"Day-level menu queries only cover Monday-Friday, got {weekday_name(weekday)}")
    return weekday


@dataclass
class WeeklyMenu:
    """
    A Monday-to-Sunday window of daily menus

    start_date must be a Monday and end_date the Sunday after it. Every
    daily menu must fall inside [start_date, end_date].
    """
    start_date: date
    end_date: date
    daily_menus: List[DailyMenu] = field(default_factory=list)

    def __post_init__(self):
        self.start_date = _parse_date(self.start_date)
        self.end_date = _parse_date(self.end_date)

        if self.start_date.weekday() != Weekday.MONDAY:
            raise ValueError(f"Week must start on a Monday, got {_format_date(self.start_date)}")
        if self.end_date != self.start_date + timedelta(days=6):
            raise ValueError(
                f"Week starting {_format_date(self.start_date)} must end on "
                f"{_format_date(self.start_date + timedelta(days=6))}, got {_format_date(self.end_date)}"
            )

        for daily_menu in self.daily_menus:
            self._check_in_window(daily_menu)

    def _check_in_window(self, daily_menu: DailyMenu):
        if not self.contains(daily_menu.date):
            raise ValueError(
                f"{daily_menu.meal_type.value} on {_format_date(daily_menu.date)} is outside week "
                f"{_format_date(self.start_date)}..{_format_date(self.end_date)}"
            )

    def contains(self, target_date: date) -> bool:
        return self.start_date <= target_date <= self.end_date

    def add_daily_menu(self, daily_menu: DailyMenu):
        self._check_in_window(daily_menu)
        self.daily_menus.append(daily_menu)

    def menus_by_type(self, meal_type: MealType) -> List[DailyMenu]:
        return [menu for menu in self.daily_menus if menu.meal_type == meal_type]

    def menu_by_date(self, target_date: date) -> Optional[DailyMenu]:
        return next((menu for menu in self.daily_menus if menu.date == target_date), None)

    def menus_by_date(self, target_date: date) -> List[DailyMenu]:
        """All meal types served on a date"""
        return [menu for menu in self.daily_menus if menu.date == target_date]

    def menu_by_date_and_type(self, target_date: date, meal_type: MealType) -> Optional[DailyMenu]:
        return next(
            (menu for menu in self.daily_menus
             if menu.date == target_date and menu.meal_type == meal_type),
            None
        )

    def meals_by_date(self, target_date: date) -> DailyMeals:
        return _meals_from(self.menus_by_date(target_date))

    def menus_by_weekday(self, weekday: Weekday) -> List[DailyMenu]:
        """
        All meal types served on a weekday of this week

        Args:
            weekday: Monday through Friday

        Returns:
            Daily menus in stored order

        Raises:
            ValueError: If weekday is Saturday or Sunday
        """
        weekday = _require_school_day(weekday)
        return [menu for menu in self.daily_menus if menu.weekday == weekday]

    def meals_by_weekday(self, weekday: Weekday) -> DailyMeals:
        """Breakfast, lunch and snack for a weekday, partitioned by meal type"""
        return _meals_from(self.menus_by_weekday(weekday))

    def menu_by_weekday_and_type(self, weekday: Weekday, meal_type: MealType) -> Optional[DailyMenu]:
        return next((menu for menu in self.menus_by_weekday(weekday) if menu.meal_type == meal_type), None)

    def to_dict(self) -> Dict:
        return {
            'startDate': _format_date(self.start_date),
            'endDate': _format_date(self.end_date),
            'dailyMenus': [menu.to_dict() for menu in self.daily_menus],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'WeeklyMenu':
        return cls(
            start_date=_parse_date(data['startDate']),
            end_date=_parse_date(data['endDate']),
            daily_menus=[DailyMenu.from_dict(menu) for menu in data.get('dailyMenus') or []],
        )


@dataclass
class MonthlyMenu:
    """
    Weekly menus scraped for one calendar month

    year and month are labels set by the caller. Weeks may spill into the
    neighbouring months.
    """
    year: int
    month: int
    weekly_menus: List[WeeklyMenu] = field(default_factory=list)

    def add_weekly_menu(self, weekly_menu: WeeklyMenu):
        self.weekly_menus.append(weekly_menu)

    def all_daily_menus(self) -> List[DailyMenu]:
        return [menu for week in self.weekly_menus for menu in week.daily_menus]

    def menus_by_type(self, meal_type: MealType) -> List[DailyMenu]:
        return [menu for menu in self.all_daily_menus() if menu.meal_type == meal_type]

    def weekly_menu_for_date(self, target_date: date) -> Optional[WeeklyMenu]:
        """
        Week to show for a date

        Weekdays resolve to the week containing them, Saturday and Sunday to
        the following week.

        Returns:
            WeeklyMenu or None if no week matches
        """
        from menu_calendar.weeks import find_weekly_menu
        return find_weekly_menu(self.weekly_menus, target_date)

    def to_dict(self) -> Dict:
        return {
            'year': self.year,
            'month': self.month,
            'weeklyMenus': [week.to_dict() for week in self.weekly_menus],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'MonthlyMenu':
        return cls(
            year=int(data['year']),
            month=int(data['month']),
            weekly_menus=[WeeklyMenu.from_dict(week) for week in data.get('weeklyMenus') or []],
        )


COMMON_MENU_ITEMS = {
    'spaghetti_meatballs': MenuItem(
        name="Spaghetti & Meatballs with Mozzarella Cheese & Garlic Breadstick",
        category=FoodCategory.MAIN_ENTREE,
        is_vegetarian=False,
    ),
    'cheese_pizza': MenuItem(
        name="Cheese Pizza",
        category=FoodCategory.MAIN_ENTREE,
        is_vegetarian=True,
    ),
    'hamburger': MenuItem(
        name="Hamburger or Cheeseburger with Oven Baked Fries",
        category=FoodCategory.MAIN_ENTREE,
        is_vegetarian=False,
    ),
    'toasted_cheese': MenuItem(
        name="Toasted Cheese Sandwich with Tomato Bisque",
        category=FoodCategory.ELEMENTARY_SECONDARY_SECOND_CHOICE,
        is_vegetarian=True,
    ),
    'plant_forward_bolognese': MenuItem(
        name="Plant Forward Bolognese with Garlic Breadstick",
        category=FoodCategory.VEGETARIAN_ENTREE,
        is_vegetarian=True,
    ),
    'vegan_tamales': MenuItem(
        name="Vegan Corn & Chile Tamales with Refried Beans & Rice",
        category=FoodCategory.VEGETARIAN_ENTREE,
        is_vegan=True,
        is_vegetarian=True,
    ),
}


def create_sample_daily_menu() -> DailyMenu:
    """Lunch for Monday 2025-03-31, used in demos and tests"""
    daily_menu = DailyMenu(date=date(2025, 3, 31), meal_type=MealType.LUNCH, is_school_day=True)
    daily_menu.add_menu_item(COMMON_MENU_ITEMS['spaghetti_meatballs'])
    daily_menu.add_menu_item(COMMON_MENU_ITEMS['toasted_cheese'])
    return daily_menu
