import math

import config
from errors import InsufficientSampleError
from logging_setup import get_logger
from models import SampleStats, BodyWeightSample
from units import parse_weight_list, to_date, age_in_days, age_in_weeks

logger = get_logger(module="body_weight")


def valid_weights(values):
    """Drop NaN, infinite and non-positive readings (typos, empty cages on the scale)."""
    return [v for v in values if isinstance(v, (int, float)) and math.isfinite(v) and v > 0]


def sample_stats(weights, tolerance_percent=None, minimum=None):
    """
    Weighing-session statistics for a list of individual bird weights (g).

    - average: arithmetic mean
    - std_dev: sample standard deviation (n - 1)
    - uniformity_percent: share of birds within +/- tolerance of the mean, bounds inclusive
    """
    tolerance_percent = config.UNIFORMITY_TOLERANCE_PERCENT if tolerance_percent is None else tolerance_percent
    minimum = config.MIN_BODY_WEIGHT_SAMPLES if minimum is None else minimum
    minimum = max(2, minimum)

    weights = valid_weights(weights)
    n = len(weights)
    if n < minimum:
        raise InsufficientSampleError(n, minimum)

    avg = sum(weights) / n
    variance = sum((w - avg) ** 2 for w in weights) / (n - 1)
    std_dev = math.sqrt(variance)

    lower = avg * (1 - tolerance_percent / 100.0)
    upper = avg * (1 + tolerance_percent / 100.0)
    within = len([w for w in weights if lower <= w <= upper])

    return SampleStats(
        sample_size=n,
        average=avg,
        std_dev=std_dev,
        uniformity_percent=within / n * 100,
        min_weight=min(weights),
        max_weight=max(weights),
        within_band=within,
    )


def compute_body_weight_stats(raw_weights, tolerance_percent=None):
    """
    Entry point for the weighing calculator. `raw_weights` is either a list of
    numbers or the free text typed by the operator.
    """
    parsed = parse_weight_list(raw_weights)
    kept = valid_weights(parsed)
    dropped = len(parsed) - len(kept)
    if dropped:
        logger.warning("Dropped invalid body weight values", dropped=dropped, kept=len(kept))
    return sample_stats(kept, tolerance_percent=tolerance_percent)


def build_body_weight_sample(flock, weighing_date, raw_weights, standard_lookup=None, tolerance_percent=None):
    """
    Compute a full BodyWeightSample for one weighing of a flock, ready to be
    upserted by (flock, weighing_date). The standard weight is looked up at the
    flock's age in weeks on the weighing date; None when the breed has no
    standard or the standard has no point at that week.
    """
    stats = compute_body_weight_stats(raw_weights, tolerance_percent=tolerance_percent)
    weighing_date = to_date(weighing_date)
    age_days = age_in_days(flock.start_date, weighing_date, flock.entry_age_days)

    standard_weight = None
    if standard_lookup is not None:
        val = standard_lookup.value_at(age_in_weeks(age_days), 'body_weight_g')
        if isinstance(val, (int, float)):
            standard_weight = float(val)

    return BodyWeightSample(
        flock_id=flock.id,
        weighing_date=weighing_date,
        age_days=age_days,
        avg_body_weight_actual=stats.average,
        uniformity_percentage=stats.uniformity_percent,
        sample_size=stats.sample_size,
        std_dev=stats.std_dev,
        avg_body_weight_standard=standard_weight,
    )
