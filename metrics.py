from errors import UnknownMetricError
from logging_setup import get_logger
from models import KpiSet, ProductionRecord, MortalityRecord, coerce_all
from units import safe_div
from weekly import merge_daily_records, dedupe_by_day

logger = get_logger(module="metrics")

METRICS_REGISTRY = {
    # --- Production ---
    'hen_day_production_percent': {'label': 'Hen-Day (%)', 'unit': '%', 'standard': 'hen_day_production_percent'},
    'egg_weight_g': {'label': 'Avg. Egg Weight (g)', 'unit': 'g', 'standard': 'egg_weight_g'},
    'total_eggs': {'label': 'Total Eggs', 'unit': '', 'standard': None},

    # --- Feed ---
    'feed_intake_g_per_day': {'label': 'Feed Intake (g/bird/day)', 'unit': 'g', 'standard': 'feed_intake_g_per_day'},
    'feed_total_kg': {'label': 'Total Feed (Kg)', 'unit': 'Kg', 'standard': None},
    'fcr': {'label': 'FCR', 'unit': '', 'standard': 'fcr'},

    # --- Depletion ---
    'mortality_percent': {'label': 'Mortality (%)', 'unit': '%', 'standard': 'mortality_percent'},
    'depletion_percent': {'label': 'Depletion (%)', 'unit': '%', 'standard': None},
    'mortality_count': {'label': 'Mortality (Count)', 'unit': '', 'standard': None},
    'culling_count': {'label': 'Culling (Count)', 'unit': '', 'standard': None},

    # --- Body Weight ---
    'body_weight_g': {'label': 'Body Weight (g)', 'unit': 'g', 'standard': 'body_weight_g'},
    'uniformity_percent': {'label': 'Uniformity (%)', 'unit': '%', 'standard': 'uniformity_percent'},

    # --- Health ---
    'respiratory_score': {'label': 'Respiratory Score (0-5)', 'unit': '', 'standard': None},
}


def metric_info(metric):
    if metric not in METRICS_REGISTRY:
        raise UnknownMetricError(metric)
    return METRICS_REGISTRY[metric]


# --- Period KPIs ---
# All of these return 0 when the denominator is missing; they feed dashboards
# that must render for incomplete periods.

def hen_day_percent(total_eggs, population):
    return safe_div(total_eggs, population)


def fcr(total_feed_kg, total_egg_weight_kg):
    # 0 means "not computable yet" (no egg weight recorded), not a perfect FCR
    return safe_div(total_feed_kg, total_egg_weight_kg, multiplier=1.0)


def total_depletion(mortality_count, culling_count):
    return (mortality_count or 0) + (culling_count or 0)


def initial_population(current_population, depletion_to_date):
    """
    The flock record only carries the live count, so the starting count is
    rebuilt as live + everything removed so far. Assumes population only ever
    changes through mortality and culling.
    """
    return (current_population or 0) + (depletion_to_date or 0)


def depletion_rate_percent(depletion, current_population):
    return safe_div(depletion, initial_population(current_population, depletion))


def avg_feed_intake_per_bird_per_day(total_feed_kg, population, days_in_period):
    """Grams per bird per day."""
    if not population or population <= 0:
        return 0.0
    return safe_div(total_feed_kg * 1000, population * days_in_period, multiplier=1.0)


def avg_egg_weight_g(total_egg_weight_kg, total_egg_count):
    return safe_div(total_egg_weight_kg * 1000, total_egg_count, multiplier=1.0)


def _for_flock(records, flock):
    return [r for r in records if r.flock_id is None or r.flock_id == flock.id]


def compute_flock_kpis(flock, production_history, mortality_history=()):
    """
    Flock detail KPIs over everything the caller fetched for the flock.

    Hen-day % is reported twice: for the latest production day (what the farm
    manager looks at each morning) and averaged over all production days.
    """
    production = _for_flock(dedupe_by_day(coerce_all(ProductionRecord, production_history)), flock)
    mortality = _for_flock(coerce_all(MortalityRecord, mortality_history), flock)
    rows = merge_daily_records(production, mortality)

    total_eggs = sum(p.total_egg_count for p in production)
    total_weight = sum(p.total_egg_weight_kg for p in production)
    total_feed = sum(p.total_feed_consumption for p in production)
    days = len(production)

    total_mort = sum(r['mortality'] for r in rows)
    total_cull = sum(r['culling'] for r in rows)
    depletion = total_depletion(total_mort, total_cull)

    latest_hen_day = 0.0
    if production:
        latest = max(production, key=lambda p: p.date)
        latest_hen_day = hen_day_percent(latest.total_egg_count, flock.population)

    kpis = KpiSet(
        current_population=flock.population,
        initial_population=initial_population(flock.population, depletion),
        total_eggs=total_eggs,
        total_egg_weight_kg=total_weight,
        total_feed_consumption=total_feed,
        hen_day_percent=latest_hen_day,
        avg_hen_day_percent=hen_day_percent(total_eggs, flock.population * days),
        fcr=fcr(total_feed, total_weight),
        total_mortality=total_mort,
        total_culling=total_cull,
        total_depletion=depletion,
        depletion_rate_percent=depletion_rate_percent(depletion, flock.population),
        avg_egg_weight_g=avg_egg_weight_g(total_weight, total_eggs),
        avg_feed_intake_g=avg_feed_intake_per_bird_per_day(total_feed, flock.population, days),
        days_in_period=days,
    )
    logger.debug("Computed flock KPIs", flock_id=flock.id, days=days, depletion=depletion)
    return kpis


def bucket_metric_value(bucket, metric, population, initial_pop):
    """
    Value of `metric` for one aggregated bucket of merged daily rows.
    Production-based metrics are None for a week with no production record,
    so the chart shows a gap instead of a false zero.
    """
    metric_info(metric)
    prod_days = bucket.count('eggs')

    if metric == 'hen_day_production_percent':
        if not prod_days: return None
        return hen_day_percent(bucket.total('eggs'), population * prod_days)
    if metric == 'egg_weight_g':
        if not prod_days: return None
        return avg_egg_weight_g(bucket.total('egg_weight_kg'), bucket.total('eggs'))
    if metric == 'total_eggs':
        if not prod_days: return None
        return bucket.total('eggs')
    if metric == 'feed_intake_g_per_day':
        if not bucket.count('feed_kg'): return None
        return avg_feed_intake_per_bird_per_day(bucket.total('feed_kg'), population, bucket.count('feed_kg'))
    if metric == 'feed_total_kg':
        if not bucket.count('feed_kg'): return None
        return bucket.total('feed_kg')
    if metric == 'fcr':
        if not prod_days: return None
        return fcr(bucket.total('feed_kg'), bucket.total('egg_weight_kg'))
    if metric == 'mortality_percent':
        return safe_div(bucket.total('mortality'), initial_pop)
    if metric == 'depletion_percent':
        return safe_div(bucket.total('mortality') + bucket.total('culling'), initial_pop)
    if metric == 'mortality_count':
        return bucket.total('mortality')
    if metric == 'culling_count':
        return bucket.total('culling')
    if metric == 'body_weight_g':
        return bucket.mean('body_weight_g')
    if metric == 'uniformity_percent':
        return bucket.mean('uniformity')
    if metric == 'respiratory_score':
        return bucket.mean('respiratory_score')
    raise UnknownMetricError(metric)
