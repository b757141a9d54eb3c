"""
Read-only snapshots of the records the persistence layer hands to the engine.

Each model has a lenient `from_dict` that accepts the row shape returned by the
database (numeric fields may arrive as strings with comma decimals, blanks, or
be missing entirely).
"""
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Optional, Dict, Union

from units import parse_number, to_date, age_in_days, age_in_weeks

FLOCK_ACTIVE = 'active'


def _count(val):
    # Counts are never negative; the lenient parser may hand us anything
    return max(0, int(parse_number(val)))


def _qty(val):
    return max(0.0, float(parse_number(val)))


@dataclass(frozen=True)
class Flock:
    id: int
    farm_id: Optional[int]
    breed: str
    population: int
    start_date: date
    entry_age_days: int = 0
    status: str = FLOCK_ACTIVE
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data.get('id'),
            farm_id=data.get('farm_id'),
            breed=data.get('breed') or '',
            population=_count(data.get('population')),
            start_date=to_date(data.get('start_date')),
            entry_age_days=_count(data.get('entry_age_days')),
            status=data.get('status') or FLOCK_ACTIVE,
            name=data.get('name'),
        )

    def age_in_days(self, on_date):
        if self.start_date is None or on_date is None:
            return None
        return age_in_days(self.start_date, on_date, self.entry_age_days)

    def age_in_weeks(self, on_date):
        days = self.age_in_days(on_date)
        return age_in_weeks(days) if days is not None else None


@dataclass(frozen=True)
class FeedConsumption:
    feed_code: str
    quantity_kg: float

    @classmethod
    def from_dict(cls, data):
        return cls(feed_code=data.get('feed_code') or '', quantity_kg=_qty(data.get('quantity_kg')))


@dataclass(frozen=True)
class ProductionRecord:
    flock_id: int
    date: date
    normal_eggs: int = 0
    white_eggs: int = 0
    cracked_eggs: int = 0
    normal_eggs_weight_kg: float = 0.0
    white_eggs_weight_kg: float = 0.0
    cracked_eggs_weight_kg: float = 0.0
    feed_consumption: tuple = ()
    notes: Optional[str] = None
    # Only present when depletion is captured on the production form
    mortality_count: Optional[int] = None
    culling_count: Optional[int] = None

    @classmethod
    def from_dict(cls, data):
        feeds = tuple(
            f if isinstance(f, FeedConsumption) else FeedConsumption.from_dict(f)
            for f in (data.get('feed_consumption') or [])
        )
        mort = data.get('mortality_count')
        cull = data.get('culling_count')
        return cls(
            flock_id=data.get('flock_id'),
            date=to_date(data.get('date')),
            normal_eggs=_count(data.get('normal_eggs')),
            white_eggs=_count(data.get('white_eggs')),
            cracked_eggs=_count(data.get('cracked_eggs')),
            normal_eggs_weight_kg=_qty(data.get('normal_eggs_weight_kg')),
            white_eggs_weight_kg=_qty(data.get('white_eggs_weight_kg')),
            cracked_eggs_weight_kg=_qty(data.get('cracked_eggs_weight_kg')),
            feed_consumption=feeds,
            notes=data.get('notes'),
            mortality_count=_count(mort) if mort is not None else None,
            culling_count=_count(cull) if cull is not None else None,
        )

    @property
    def total_egg_count(self):
        return self.normal_eggs + self.white_eggs + self.cracked_eggs

    @property
    def total_egg_weight_kg(self):
        return self.normal_eggs_weight_kg + self.white_eggs_weight_kg + self.cracked_eggs_weight_kg

    @property
    def total_feed_consumption(self):
        return sum(f.quantity_kg for f in self.feed_consumption)

    @property
    def has_depletion(self):
        return self.mortality_count is not None or self.culling_count is not None

    @property
    def total_depletion(self):
        return (self.mortality_count or 0) + (self.culling_count or 0)


@dataclass(frozen=True)
class MortalityRecord:
    flock_id: int
    date: date
    mortality_count: int = 0
    culling_count: int = 0
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            flock_id=data.get('flock_id'),
            date=to_date(data.get('date')),
            mortality_count=_count(data.get('mortality_count')),
            culling_count=_count(data.get('culling_count')),
            notes=data.get('notes'),
        )

    @property
    def total_depletion(self):
        return self.mortality_count + self.culling_count


@dataclass(frozen=True)
class BodyWeightSample:
    flock_id: int
    weighing_date: date
    age_days: int
    avg_body_weight_actual: float
    uniformity_percentage: float = 0.0
    sample_size: int = 0
    std_dev: float = 0.0
    avg_body_weight_standard: Optional[float] = None

    @classmethod
    def from_dict(cls, data):
        std = data.get('avg_body_weight_standard')
        return cls(
            flock_id=data.get('flock_id'),
            weighing_date=to_date(data.get('weighing_date')),
            age_days=_count(data.get('age_days')),
            avg_body_weight_actual=_qty(data.get('avg_body_weight_actual')),
            uniformity_percentage=_qty(data.get('uniformity_percentage')),
            sample_size=_count(data.get('sample_size')),
            std_dev=_qty(data.get('std_dev')),
            avg_body_weight_standard=float(parse_number(std)) if std not in (None, '') else None,
        )

    def to_dict(self):
        d = asdict(self)
        d['weighing_date'] = self.weighing_date.isoformat()
        return d


@dataclass(frozen=True)
class RespiratoryRecord:
    flock_id: int
    check_date: date
    respiratory_score: int = 0
    symptoms: frozenset = frozenset()
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        score = int(parse_number(data.get('respiratory_score')))
        return cls(
            flock_id=data.get('flock_id'),
            check_date=to_date(data.get('check_date')),
            respiratory_score=min(5, max(0, score)),
            symptoms=frozenset(data.get('symptoms') or ()),
            notes=data.get('notes'),
        )


@dataclass(frozen=True)
class Band:
    min: float
    max: float


@dataclass(frozen=True)
class BreedStandard:
    id: int
    breed: str
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        return cls(id=data.get('id'), breed=data.get('breed') or '', name=data.get('name'))


@dataclass(frozen=True)
class BreedStandardPoint:
    standard_id: int
    age_weeks: int
    values: Dict[str, Union[float, Band]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data):
        """
        Accepts the flat row shape of the standard data table:
        {'standard_id': 1, 'age_weeks': 20, 'hen_day_production_percent': 5.0,
         'body_weight_g_min': 1550, 'body_weight_g_max': 1650}
        A `<metric>_min`/`<metric>_max` pair becomes a Band.
        """
        values = {}
        for key, raw in data.items():
            if key in ('standard_id', 'age_weeks', 'id') or raw is None or raw == '':
                continue
            if key.endswith('_min') or key.endswith('_max'):
                metric = key[:-4]
                lo = data.get(metric + '_min')
                hi = data.get(metric + '_max')
                if lo not in (None, '') and hi not in (None, ''):
                    values[metric] = Band(float(parse_number(lo)), float(parse_number(hi)))
                continue
            values[key] = float(parse_number(raw))
        return cls(
            standard_id=data.get('standard_id'),
            age_weeks=int(parse_number(data.get('age_weeks'))),
            values=values,
        )

    def get(self, metric):
        return self.values.get(metric)


@dataclass
class SampleStats:
    sample_size: int
    average: float
    std_dev: float
    uniformity_percent: float
    min_weight: float
    max_weight: float
    within_band: int

    def to_dict(self):
        return asdict(self)


@dataclass
class KpiSet:
    current_population: int = 0
    initial_population: int = 0
    total_eggs: int = 0
    total_egg_weight_kg: float = 0.0
    total_feed_consumption: float = 0.0
    hen_day_percent: float = 0.0
    avg_hen_day_percent: float = 0.0
    fcr: float = 0.0
    total_mortality: int = 0
    total_culling: int = 0
    total_depletion: int = 0
    depletion_rate_percent: float = 0.0
    avg_egg_weight_g: float = 0.0
    avg_feed_intake_g: float = 0.0
    days_in_period: int = 0

    def to_dict(self):
        return asdict(self)


def coerce_all(model, rows):
    """Turn a list of dict rows (or models) into models of `model`."""
    return [r if isinstance(r, model) else model.from_dict(r) for r in (rows or [])]
