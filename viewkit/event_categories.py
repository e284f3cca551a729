"""Event categories, keyword rules and the persisted swatch filter.

Concepts
--------
Event records carry free-text type descriptions (``"Flood"``,
``"Mass movement (dry)"``, ``"Extreme temperature "``). ``classify`` maps such
text to a :class:`Category` by walking :data:`CATEGORY_RULES` in order and
returning the first rule whose keyword set matches; anything unmatched is
``Category.OTHER``.

Precedence
----------
Rules are evaluated in list order, so text matching several rules (for
example ``"earthquake induced mass movement"``) takes the first one. This
order follows the colour mapping the map legend was built around; revisit it
if the category taxonomy changes.

``CategoryFilter`` owns the toggled-off set and persists it under
``swatchState`` as ``{key: 1 | 0}`` where ``1`` means hidden.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, List, Optional, Tuple

from .preferences import PreferenceStore

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

SWATCH_STATE_KEY = "swatchState"
DISABLED_SWATCH_COLOR = "#888"


class Category(Enum):
    """Event category with its persisted key, legend label and colour."""

    MASS_MOVEMENT = ("massmovement", "Mass movement", "#6ec6ff")
    LANDSLIDE = ("landslide", "Landslide", "#8b5a2b")
    EARTHQUAKE = ("earthquake", "Earthquake", "#8b4513")
    DROUGHT = ("drought", "Drought", "#d99058")
    FLOOD = ("flood", "Flood", "#1f78b4")
    STORM = ("storm", "Storm", "#6a0dad")
    TEMPERATURE = ("temperature", "Extreme temperature", "#ffd700")
    VOLCANO = ("volcano", "Volcanic activity", "#ff8c00")
    OTHER = ("other", "Other / Unknown", "#d62728")

    def __init__(self, key: str, label: str, color: str) -> None:
        self.key = key
        self.label = label
        self.color = color

    @classmethod
    def from_key(cls, key: str) -> Optional["Category"]:
        for category in cls:
            if category.key == key:
                return category
        return None


def _contains_any(*words: str) -> Callable[[str], bool]:
    return lambda text: any(w in text for w in words)


def _mass_movement(text: str) -> bool:
    return (
        "mass movement" in text
        or "mass-movement" in text
        or "massmovement" in text
        or ("mass" in text and "movement" in text)
    )


@dataclass(frozen=True)
class CategoryRule:
    """One ``keywords -> category`` rule; ``matches`` sees lower-cased text."""

    category: Category
    keywords: Tuple[str, ...]
    matches: Callable[[str], bool]


def _rule(category: Category, *keywords: str) -> CategoryRule:
    return CategoryRule(category=category, keywords=keywords, matches=_contains_any(*keywords))


# Source-order precedence: the first matching rule wins.
CATEGORY_RULES: List[CategoryRule] = [
    _rule(Category.STORM, "storm"),
    _rule(Category.DROUGHT, "drought"),
    _rule(Category.FLOOD, "flood"),
    _rule(Category.LANDSLIDE, "landslide"),
    _rule(Category.EARTHQUAKE, "earthquake", "quake"),
    _rule(Category.TEMPERATURE, "temperature", "heat"),
    _rule(Category.VOLCANO, "volcan", "volcano"),
    CategoryRule(
        category=Category.MASS_MOVEMENT,
        keywords=("mass movement", "mass-movement", "massmovement"),
        matches=_mass_movement,
    ),
]


def classify(text: Optional[str]) -> Category:
    """Return the category of a free-text event type (case-insensitive)."""
    raw = str(text or "").strip().lower()
    if not raw:
        return Category.OTHER
    for rule in CATEGORY_RULES:
        if rule.matches(raw):
            return rule.category
    return Category.OTHER


class CategoryFilter:
    """Per-category visibility toggles persisted in a :class:`PreferenceStore`.

    Unknown keys in the stored mapping are ignored; a missing or malformed
    entry means every category is visible.
    """

    def __init__(self, store: PreferenceStore) -> None:
        self._store = store
        self._disabled: set[Category] = set()
        raw = store.get_json(SWATCH_STATE_KEY, default={})
        if not isinstance(raw, dict):
            logger.debug("Ignoring malformed %s preference", SWATCH_STATE_KEY)
            raw = {}
        for key, flag in raw.items():
            category = Category.from_key(str(key))
            if category is not None and flag == 1:
                self._disabled.add(category)

    @property
    def disabled(self) -> FrozenSet[Category]:
        return frozenset(self._disabled)

    def is_enabled(self, category: Category) -> bool:
        return category not in self._disabled

    def set_enabled(self, category: Category, enabled: bool) -> None:
        if enabled:
            self._disabled.discard(category)
        else:
            self._disabled.add(category)
        self._persist()

    def toggle(self, category: Category) -> bool:
        """Flip ``category`` and return whether it is now enabled."""
        enabled = not self.is_enabled(category)
        self.set_enabled(category, enabled)
        return enabled

    def hides(self, text: Optional[str]) -> bool:
        """Return ``True`` when a record with type ``text`` must be left out.

        A disabled category hides every record whose text matches its
        keywords, even when an earlier rule decides the record's colour.
        ``OTHER`` hides records no rule matches.
        """
        if not self._disabled:
            return False
        raw = str(text or "").strip().lower()
        matched_any = False
        for rule in CATEGORY_RULES:
            if rule.matches(raw):
                matched_any = True
                if rule.category in self._disabled:
                    return True
        return not matched_any and Category.OTHER in self._disabled

    def swatch_color(self, category: Category) -> str:
        return category.color if self.is_enabled(category) else DISABLED_SWATCH_COLOR

    def _persist(self) -> None:
        state = {c.key: (0 if self.is_enabled(c) else 1) for c in Category}
        self._store.set_json(SWATCH_STATE_KEY, state)
