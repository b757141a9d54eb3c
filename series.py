"""
Chart-ready label/series builders.

Every builder returns plain dicts of lists aligned index-for-index with
`labels`. Styling (colours, dashes, band shading) belongs to the front end.

Standard comparison:
- `standard_series` is None when no standard is available for the flock.
- For a metric the standard gives as a (min, max) band, `standard_series` is
  None and `standard_min_series` / `standard_max_series` carry the band.
"""
import config
from logging_setup import get_logger
from metrics import (
    METRICS_REGISTRY, metric_info, bucket_metric_value, hen_day_percent, fcr,
    avg_egg_weight_g, initial_population,
)
from models import (
    Flock, ProductionRecord, MortalityRecord, BodyWeightSample, RespiratoryRecord, Band, coerce_all,
    FLOCK_ACTIVE,
)
from standards import as_lookup
from units import in_range, age_in_weeks, round_safe
from weekly import (
    aggregate_by_age_week, aggregate_daily_rows_weekly, merge_daily_records, dedupe_by_day,
)

logger = get_logger(module="series")


def standard_series(lookup, ages, metric):
    """Standard values for each age in weeks (exact match, None where missing)."""
    if metric is None or not lookup:
        return {'standard_series': None}

    values = [lookup.value_at(a, metric) if a is not None else None for a in ages]

    if lookup.has_band(metric):
        lows, highs = [], []
        for v in values:
            if isinstance(v, Band):
                lows.append(v.min)
                highs.append(v.max)
            elif v is None:
                lows.append(None)
                highs.append(None)
            else:
                lows.append(v)
                highs.append(v)
        return {'standard_series': None, 'standard_min_series': lows, 'standard_max_series': highs}

    return {'standard_series': values}


def _for_flock(records, flock):
    return [r for r in records if r.flock_id is None or r.flock_id == flock.id]


def _chart_label(d):
    return d.strftime(config.CHART_DATE_FORMAT)


def build_growth_series(flock, body_weight_history, standard_points=None, max_weeks=None):
    """
    Body-weight growth curve on a fixed age axis (weeks 0..max_weeks).

    The axis never shrinks with sparse data: every week has an entry and weeks
    without a weighing are None.
    """
    flock = flock if isinstance(flock, Flock) else Flock.from_dict(flock)
    max_weeks = config.GROWTH_CHART_MAX_WEEKS if max_weeks is None else max_weeks
    samples = _for_flock(coerce_all(BodyWeightSample, body_weight_history), flock)
    lookup = as_lookup(standard_points)

    weeks = list(range(max_weeks + 1))
    result = {
        'labels': [f"Week {w}" for w in weeks],
        'weeks': weeks,
        'actual_series': aggregate_by_age_week(samples, max_weeks),
    }
    result.update(standard_series(lookup, weeks, 'body_weight_g'))

    lookup.clear()
    logger.debug("Built growth series", flock_id=flock.id, samples=len(samples), max_weeks=max_weeks)
    return result


def build_weekly_performance_series(flock, production_history, standard_points=None,
                                    metric='hen_day_production_percent', date_range=None,
                                    mortality_history=(), body_weight_history=(),
                                    respiratory_history=()):
    """
    One value per ISO week for `metric`, plus the breed standard at the
    flock's age in the first recorded day of each week.
    """
    info = metric_info(metric)
    flock = flock if isinstance(flock, Flock) else Flock.from_dict(flock)

    rows = merge_daily_records(
        _for_flock(coerce_all(ProductionRecord, production_history), flock),
        _for_flock(coerce_all(MortalityRecord, mortality_history), flock),
        _for_flock(coerce_all(BodyWeightSample, body_weight_history), flock),
        _for_flock(coerce_all(RespiratoryRecord, respiratory_history), flock),
    )

    # Depletion to date is taken over the whole history, not just the window shown
    depletion = sum(r['mortality'] + r['culling'] for r in rows)
    initial_pop = initial_population(flock.population, depletion)

    rows = [r for r in rows if in_range(r['date'], date_range)]
    buckets = aggregate_daily_rows_weekly(rows)

    ages = [flock.age_in_weeks(b.first_date) for b in buckets]
    lookup = as_lookup(standard_points)

    result = {
        'metric': metric,
        'label': info['label'],
        'unit': info['unit'],
        'labels': [b.label for b in buckets],
        'weeks': [b.key for b in buckets],
        'ages': ages,
        'ranges': [{'start': b.first_date.isoformat(), 'end': b.last_date.isoformat()} for b in buckets],
        'actual_series': [bucket_metric_value(b, metric, flock.population, initial_pop) for b in buckets],
    }
    result.update(standard_series(lookup, ages, info['standard']))

    lookup.clear()
    logger.debug("Built weekly series", flock_id=flock.id, metric=metric, weeks=len(buckets))
    return result


def build_report_series(production_records, standard_points=None, date_range=None, flocks=()):
    """
    Production report over several flocks: period totals and a daily hen-day %
    line (eggs of the reporting flocks / their combined population). Records of
    a flock missing from `flocks` count in the totals but not in hen-day %.

    The standard line is aligned on the flock of the earliest record in the
    window that has flock details; without flock details there is no standard line.
    """
    flocks = coerce_all(Flock, flocks)
    flock_map = {f.id: f for f in flocks}
    records = [
        r for r in dedupe_by_day(coerce_all(ProductionRecord, production_records))
        if in_range(r.date, date_range)
    ]

    total_eggs = sum(r.total_egg_count for r in records)
    total_weight = sum(r.total_egg_weight_kg for r in records)
    total_feed = sum(r.total_feed_consumption for r in records)
    kpis = {
        'total_egg_count': total_eggs,
        'total_egg_weight_kg': total_weight,
        'total_feed_consumption': total_feed,
        'fcr': fcr(total_feed, total_weight),
        'avg_egg_weight_g': avg_egg_weight_g(total_weight, total_eggs),
    }

    daily = {}
    for r in records:
        day = daily.setdefault(r.date, {'eggs': 0, 'population': 0})
        f = flock_map.get(r.flock_id)
        # Without a population the eggs cannot count towards hen-day %
        if f is None:
            continue
        day['eggs'] += r.total_egg_count
        day['population'] += f.population

    dates = sorted(daily.keys())
    chart = {
        'labels': [_chart_label(d) for d in dates],
        'dates': [d.isoformat() for d in dates],
        'actual_series': [hen_day_percent(daily[d]['eggs'], daily[d]['population']) for d in dates],
    }

    ref_flock = None
    known = [r for r in records if r.flock_id in flock_map]
    if known:
        first = min(known, key=lambda r: r.date)
        ref_flock = flock_map[first.flock_id]

    lookup = as_lookup(standard_points)
    if ref_flock is not None:
        ages = [ref_flock.age_in_weeks(d) for d in dates]
        chart.update(standard_series(lookup, ages, 'hen_day_production_percent'))
    else:
        chart['standard_series'] = None
    lookup.clear()

    logger.debug("Built production report", records=len(records), days=len(dates))
    return {'kpis': kpis, 'chart_series': chart}


def build_production_chart(flock, production_history, standard_points=None):
    """Daily hen-day % against standard, plus feed consumed (kg) on a second axis."""
    flock = flock if isinstance(flock, Flock) else Flock.from_dict(flock)
    records = sorted(
        _for_flock(dedupe_by_day(coerce_all(ProductionRecord, production_history)), flock),
        key=lambda r: r.date,
    )
    lookup = as_lookup(standard_points)

    result = {
        'labels': [_chart_label(r.date) for r in records],
        'dates': [r.date.isoformat() for r in records],
        'actual_series': [hen_day_percent(r.total_egg_count, flock.population) for r in records],
        'feed_series': [round_safe(r.total_feed_consumption) for r in records],
    }
    result.update(standard_series(lookup, [flock.age_in_weeks(r.date) for r in records], 'hen_day_production_percent'))
    lookup.clear()
    return result


def build_body_weight_chart(flock, body_weight_history, standard_points=None):
    """One point per weighing session, compared with the standard at that age."""
    flock = flock if isinstance(flock, Flock) else Flock.from_dict(flock)
    samples = sorted(
        _for_flock(coerce_all(BodyWeightSample, body_weight_history), flock),
        key=lambda s: s.weighing_date,
    )
    lookup = as_lookup(standard_points)

    result = {
        'labels': [_chart_label(s.weighing_date) for s in samples],
        'dates': [s.weighing_date.isoformat() for s in samples],
        'actual_series': [s.avg_body_weight_actual for s in samples],
        'uniformity_series': [s.uniformity_percentage for s in samples],
    }
    result.update(standard_series(lookup, [age_in_weeks(s.age_days) for s in samples], 'body_weight_g'))
    lookup.clear()
    return result


def build_depletion_series(mortality_history, date_range=None):
    """Stacked mortality / culling counts per day."""
    records = sorted(
        [m for m in dedupe_by_day(coerce_all(MortalityRecord, mortality_history)) if in_range(m.date, date_range)],
        key=lambda m: m.date,
    )
    return {
        'labels': [_chart_label(m.date) for m in records],
        'dates': [m.date.isoformat() for m in records],
        'mortality_series': [m.mortality_count for m in records],
        'culling_series': [m.culling_count for m in records],
    }


def compute_dashboard_kpis(flocks, production_records):
    """
    Farm overview: how many farms and active flocks, live birds, and hen-day %
    for the most recent production date across all flocks.
    """
    flocks = coerce_all(Flock, flocks)
    active = [f for f in flocks if f.status == FLOCK_ACTIVE]
    records = dedupe_by_day(coerce_all(ProductionRecord, production_records))

    hen_day = 0.0
    latest_date = None
    if records:
        latest_date = max(r.date for r in records)
        latest = [r for r in records if r.date == latest_date]
        populations = {f.id: f.population for f in flocks}
        eggs = sum(r.total_egg_count for r in latest)
        population = sum(populations.get(fid, 0) for fid in {r.flock_id for r in latest})
        hen_day = hen_day_percent(eggs, population)

    return {
        'total_farms': len({f.farm_id for f in flocks if f.farm_id is not None}),
        'active_flocks': len(active),
        'total_population': sum(f.population for f in active),
        'latest_date': latest_date.isoformat() if latest_date else None,
        'hen_day_percent': hen_day,
    }


def available_metrics():
    return [{'key': k, **v} for k, v in METRICS_REGISTRY.items()]
