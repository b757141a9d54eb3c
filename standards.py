"""
Breed standard curves.

Standards are reference tables supplied by the caller for each computation.
Nothing here is cached at module level: a StandardTable / StandardLookup only
lives as long as the report build that created it, so two organisations never
see each other's curves.
"""
import pandas as pd

from logging_setup import get_logger
from models import Band, BreedStandard, BreedStandardPoint, coerce_all
from units import parse_number

logger = get_logger(module="standards")

STANDARD_METRICS = (
    'hen_day_production_percent',
    'body_weight_g',
    'feed_intake_g_per_day',
    'egg_weight_g',
    'fcr',
    'mortality_percent',
    'uniformity_percent',
)


class StandardLookup:
    """Points of a single breed standard, indexed by age in weeks."""

    def __init__(self, points=None):
        self._points = coerce_all(BreedStandardPoint, points)
        self._by_week = None

    def _index(self):
        if self._by_week is None:
            self._by_week = {}
            for p in self._points:
                # First row for a week wins; later duplicates are ignored
                self._by_week.setdefault(p.age_weeks, p)
        return self._by_week

    def __bool__(self):
        return bool(self._points)

    def point(self, age_weeks):
        return self._index().get(age_weeks)

    def value_at(self, age_weeks, metric):
        """Exact week match only; no interpolation between neighbouring weeks."""
        p = self.point(age_weeks)
        if p is None:
            return None
        return p.get(metric)

    def has_band(self, metric):
        return any(isinstance(p.get(metric), Band) for p in self._points)

    def clear(self):
        self._by_week = None


class StandardTable:
    """Catalogue of breed standards plus their data points."""

    def __init__(self, standards=None, points=None):
        self.standards = coerce_all(BreedStandard, standards)
        self._points = coerce_all(BreedStandardPoint, points)
        self._lookups = {}

    def find_standard_for_breed(self, breed):
        """Exact breed name match. No standard is a valid answer (None)."""
        for s in self.standards:
            if s.breed == breed:
                return s.id
        logger.debug("No breed standard", breed=breed)
        return None

    def lookup(self, standard_id):
        if standard_id is None:
            return StandardLookup()
        if standard_id not in self._lookups:
            self._lookups[standard_id] = StandardLookup(
                [p for p in self._points if p.standard_id == standard_id]
            )
        return self._lookups[standard_id]

    def lookup_for_breed(self, breed):
        return self.lookup(self.find_standard_for_breed(breed))

    def point_at(self, standard_id, age_weeks, metric):
        return self.lookup(standard_id).value_at(age_weeks, metric)

    def clear(self):
        self._lookups = {}


def find_standard_for_breed(standards, breed):
    return StandardTable(standards).find_standard_for_breed(breed)


def point_at(points, age_weeks, metric):
    return as_lookup(points).value_at(age_weeks, metric)


def as_lookup(standard_points):
    """Accept None, an iterable of points/rows, or an existing lookup."""
    if isinstance(standard_points, StandardLookup):
        return standard_points
    return StandardLookup(standard_points)


def standards_from_frame(df, standard_id):
    """
    Build points from a standard sheet loaded with pandas
    (e.g. pd.read_excel(path, sheet_name='STANDARD')).

    Expected columns: `age_weeks`, then one column per metric or a
    `<metric>_min` / `<metric>_max` pair for banded metrics. Blank cells mean
    the standard has no value for that week.
    """
    points = []
    columns = [str(c).strip() for c in df.columns]
    df = df.copy()
    df.columns = columns

    if 'age_weeks' not in columns:
        raise ValueError("Standard sheet has no 'age_weeks' column")

    for _, row in df.iterrows():
        week_val = row['age_weeks']
        if pd.isna(week_val):
            continue
        try:
            week = int(float(week_val))
        except (ValueError, TypeError):
            continue

        values = {}
        for metric in STANDARD_METRICS:
            lo_col, hi_col = metric + '_min', metric + '_max'
            if lo_col in columns and hi_col in columns:
                lo, hi = row[lo_col], row[hi_col]
                if pd.notna(lo) and pd.notna(hi):
                    values[metric] = Band(float(parse_number(lo)), float(parse_number(hi)))
                    continue
            if metric in columns and pd.notna(row[metric]):
                values[metric] = float(parse_number(row[metric]))

        points.append(BreedStandardPoint(standard_id=standard_id, age_weeks=week, values=values))

    logger.debug("Loaded standard sheet", standard_id=standard_id, weeks=len(points))
    return points
