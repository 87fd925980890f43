"""Match scoring of buildings against a user's stated preferences.

Three independent dimensions are scored on a 0-1 scale:

* **location** -- linear falloff of the great-circle distance between the
  building and the user's target point, reaching 0 at the search radius;
* **budget** -- 1 when the building's top price is within budget, decaying
  linearly to 0 at twice the budget;
* **lifestyle** -- a step function of the distance between the building's
  amenities cohort and the user's lifestyle cohort.

The overall score is the weighted sum of the three.  Store rows are parsed
into the frozen dataclasses below once, at the boundary, so the scoring
functions never see ORM objects or half-populated records.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from src.services.geo import haversine_distance

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_SEARCH_RADIUS_KM = 5.0

# (maximum cohort difference, score) in ascending order of difference
LIFESTYLE_STEPS: tuple[tuple[int, float], ...] = (
    (0, 1.0),
    (1, 0.7),
    (2, 0.4),
)
LIFESTYLE_FALLBACK_SCORE = 0.2  # difference of 3 or more


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PreferenceWeights:
    """Relative importance of each dimension in the overall score."""

    location: float
    budget: float
    lifestyle: float

    @property
    def total(self) -> float:
        return self.location + self.budget + self.lifestyle


DEFAULT_WEIGHTS = PreferenceWeights(location=0.33, budget=0.33, lifestyle=0.34)


@dataclass(frozen=True)
class ResolvedPreferences:
    """A user's preferences with defaults applied and the cohort parsed."""

    user_id: str
    latitude: float | None = None
    longitude: float | None = None
    search_radius_km: float = DEFAULT_SEARCH_RADIUS_KM
    max_budget: float | None = None
    lifestyle_cohort: int | None = None


@dataclass(frozen=True)
class BuildingProfile:
    """The subset of a building record the scorer needs."""

    id: str
    latitude: float | None = None
    longitude: float | None = None
    max_price: float | None = None
    amenities_cohort: int | None = None


@dataclass(frozen=True)
class ScoreCard:
    """Sub-scores and weighted overall score for one building."""

    building_id: str
    location: float
    budget: float
    lifestyle: float
    overall: float


# ---------------------------------------------------------------------------
# Boundary parsing
# ---------------------------------------------------------------------------


def parse_cohort(value: Any) -> int | None:
    """Parse a cohort given as a number or a numeric string.

    Integer-valued numbers are accepted in any spelling (``3``, ``3.0``,
    ``"3.0"``).  Returns ``None`` for missing, blank, non-numeric, non-finite
    or fractional values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def preferences_from_orm(row: Any, default_radius_km: float = DEFAULT_SEARCH_RADIUS_KM) -> ResolvedPreferences:
    """Construct :class:`ResolvedPreferences` from a ``UserPreferences`` row.

    A missing or non-positive search radius falls back to *default_radius_km*.
    A non-positive budget is treated as no budget.
    """
    radius = getattr(row, "search_radius_km", None)
    if radius is None or radius <= 0:
        radius = default_radius_km

    budget = getattr(row, "max_budget", None)
    if budget is not None and budget <= 0:
        budget = None

    return ResolvedPreferences(
        user_id=row.user_id,
        latitude=getattr(row, "latitude", None),
        longitude=getattr(row, "longitude", None),
        search_radius_km=float(radius),
        max_budget=budget,
        lifestyle_cohort=parse_cohort(getattr(row, "lifestyle_cohort", None)),
    )


def building_from_orm(row: Any) -> BuildingProfile:
    """Construct a :class:`BuildingProfile` from a ``Building`` row."""
    return BuildingProfile(
        id=row.id,
        latitude=getattr(row, "latitude", None),
        longitude=getattr(row, "longitude", None),
        max_price=getattr(row, "max_price", None),
        amenities_cohort=parse_cohort(getattr(row, "amenities_cohort", None)),
    )


def resolve_weights(row: Any | None) -> PreferenceWeights:
    """Return the weights stored in *row*, falling back to :data:`DEFAULT_WEIGHTS`.

    Each weight falls back independently, so a row with a NULL column still
    uses the stored values for the other two.  No normalisation is applied.
    """
    if row is None:
        return DEFAULT_WEIGHTS

    def _pick(value: float | None, default: float) -> float:
        return default if value is None else float(value)

    return PreferenceWeights(
        location=_pick(getattr(row, "location_weight", None), DEFAULT_WEIGHTS.location),
        budget=_pick(getattr(row, "budget_weight", None), DEFAULT_WEIGHTS.budget),
        lifestyle=_pick(getattr(row, "lifestyle_weight", None), DEFAULT_WEIGHTS.lifestyle),
    )


# ---------------------------------------------------------------------------
# Dimension scores
# ---------------------------------------------------------------------------


def location_score(building: BuildingProfile, prefs: ResolvedPreferences) -> float:
    """Score proximity: 1 at the target point, 0 at or beyond the search radius."""
    if (
        building.latitude is None
        or building.longitude is None
        or prefs.latitude is None
        or prefs.longitude is None
    ):
        return 0.0
    distance_km = haversine_distance(prefs.latitude, prefs.longitude, building.latitude, building.longitude)
    return max(0.0, 1.0 - distance_km / prefs.search_radius_km)


def budget_score(building: BuildingProfile, prefs: ResolvedPreferences) -> float:
    """Score affordability: 1 within budget, 0 at twice the budget."""
    if building.max_price is None or prefs.max_budget is None:
        return 0.0
    if building.max_price <= prefs.max_budget:
        return 1.0
    overshoot = (building.max_price - prefs.max_budget) / prefs.max_budget
    return max(0.0, 1.0 - overshoot)


def cohort_difference_score(difference: int) -> float:
    """Map an absolute cohort difference to a score via :data:`LIFESTYLE_STEPS`."""
    for max_difference, score in LIFESTYLE_STEPS:
        if difference <= max_difference:
            return score
    return LIFESTYLE_FALLBACK_SCORE


def lifestyle_score(building: BuildingProfile, prefs: ResolvedPreferences) -> float:
    """Score how close the building's amenities cohort is to the user's lifestyle cohort."""
    if building.amenities_cohort is None or prefs.lifestyle_cohort is None:
        return 0.0
    return cohort_difference_score(abs(building.amenities_cohort - prefs.lifestyle_cohort))


def overall_score(location: float, budget: float, lifestyle: float, weights: PreferenceWeights) -> float:
    return location * weights.location + budget * weights.budget + lifestyle * weights.lifestyle


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------


class MatchScorer:
    """Scores buildings for one user's resolved preferences and weights."""

    def __init__(self, preferences: ResolvedPreferences, weights: PreferenceWeights = DEFAULT_WEIGHTS) -> None:
        self._preferences = preferences
        self._weights = weights

    @property
    def preferences(self) -> ResolvedPreferences:
        return self._preferences

    @property
    def weights(self) -> PreferenceWeights:
        return self._weights

    def score_building(self, building: BuildingProfile) -> ScoreCard:
        """Compute the three sub-scores and the weighted overall score for one building."""
        location = location_score(building, self._preferences)
        budget = budget_score(building, self._preferences)
        lifestyle = lifestyle_score(building, self._preferences)
        return ScoreCard(
            building_id=building.id,
            location=location,
            budget=budget,
            lifestyle=lifestyle,
            overall=overall_score(location, budget, lifestyle, self._weights),
        )

    def score_buildings(self, buildings: list[BuildingProfile]) -> list[ScoreCard]:
        """Score buildings in the order given."""
        return [self.score_building(b) for b in buildings]
