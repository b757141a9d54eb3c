from collections import Counter

from logging_setup import get_logger
from models import (
    ProductionRecord, MortalityRecord, BodyWeightSample, RespiratoryRecord, coerce_all,
)
from units import iso_week_key, iso_week_label, age_in_weeks, to_date

logger = get_logger(module="weekly")


class WeeklyBucket:
    """
    Running sums for one week of one flock. `key` is an ISO (year, week) pair
    for calendar bucketing or an int for age-week bucketing.
    """

    def __init__(self, key):
        self.key = key
        self.sums = {}
        self.counts = {}
        self.dates = set()
        self.first_date = None
        self.last_date = None

    def add(self, d, values):
        d = to_date(d)
        self.dates.add(d)
        if self.first_date is None or d < self.first_date:
            self.first_date = d
        if self.last_date is None or d > self.last_date:
            self.last_date = d

        for name, val in values.items():
            # None means "not recorded that day", which must not drag averages to 0
            if val is None:
                continue
            self.sums[name] = self.sums.get(name, 0) + val
            self.counts[name] = self.counts.get(name, 0) + 1

    @property
    def day_count(self):
        return len(self.dates)

    @property
    def year(self):
        return self.key[0] if isinstance(self.key, tuple) else None

    @property
    def week(self):
        return self.key[1] if isinstance(self.key, tuple) else self.key

    @property
    def label(self):
        if isinstance(self.key, tuple):
            return iso_week_label(self.key)
        return f"Week {self.key}"

    def total(self, name):
        return self.sums.get(name, 0)

    def count(self, name):
        return self.counts.get(name, 0)

    def mean(self, name):
        n = self.count(name)
        if n == 0:
            return None
        return self.sums[name] / n

    def to_dict(self):
        return {
            'key': self.key,
            'label': self.label,
            'days': self.day_count,
            'date_start': self.first_date.isoformat() if self.first_date else None,
            'date_end': self.last_date.isoformat() if self.last_date else None,
            'sums': dict(self.sums),
            'counts': dict(self.counts),
        }


def aggregate_weekly(records, value_fn, date_fn):
    """
    Group records into ISO-week buckets.

    value_fn(record) -> {field: number or None} to sum
    date_fn(record)  -> date of the record

    Buckets come back sorted by (ISO year, ISO week), whatever order the
    records arrived in.
    """
    buckets = {}
    for r in records:
        d = date_fn(r)
        if d is None:
            continue
        key = iso_week_key(d)
        if key not in buckets:
            buckets[key] = WeeklyBucket(key)
        buckets[key].add(d, value_fn(r))

    return [buckets[k] for k in sorted(buckets.keys())]


def aggregate_by_age_week(samples, max_weeks, value_fn=None):
    """
    Average body-weight samples per age week (floor(age_days / 7)).
    Returns a dense list for weeks 0..max_weeks; weeks with no sample are None.
    """
    if value_fn is None:
        value_fn = lambda s: s.avg_body_weight_actual

    buckets = {}
    for s in samples:
        w = age_in_weeks(s.age_days)
        if w < 0 or w > max_weeks:
            continue
        if w not in buckets:
            buckets[w] = WeeklyBucket(w)
        buckets[w].add(s.weighing_date, {'value': value_fn(s)})

    return [buckets[w].mean('value') if w in buckets else None for w in range(max_weeks + 1)]


def dedupe_by_day(records, date_attr='date', label='record'):
    """
    One record per (flock, date): a later duplicate replaces the earlier one,
    matching the upsert the persistence layer performs on save.
    """
    seen = {}
    dupes = 0
    for r in records:
        if getattr(r, date_attr) is None:
            logger.warning("Skipping record without a date", kind=label)
            continue
        key = (r.flock_id, getattr(r, date_attr))
        if key in seen:
            dupes += 1
        seen[key] = r
    if dupes:
        logger.warning("Duplicate daily records replaced", kind=label, duplicates=dupes)
    return list(seen.values())


def _empty_row(flock_id, d):
    return {
        'flock_id': flock_id,
        'date': d,
        'has_production': False,
        'eggs': None,
        'egg_weight_kg': None,
        'feed_kg': None,
        'mortality': 0,
        'culling': 0,
        'body_weight_g': None,
        'uniformity': None,
        'respiratory_score': None,
        'symptoms': frozenset(),
        'notes': [],
    }


def merge_daily_records(production=(), mortality=(), body_weights=(), respiratory=()):
    """
    Join independently fetched daily records on (flock, date).

    A production day without a mortality record has mortality = culling = 0.
    Depletion counts typed on the production form are used only when the
    mortality table has nothing for that day.
    """
    production = dedupe_by_day(coerce_all(ProductionRecord, production), label='production')
    mortality = dedupe_by_day(coerce_all(MortalityRecord, mortality), label='mortality')
    body_weights = dedupe_by_day(coerce_all(BodyWeightSample, body_weights), 'weighing_date', 'body_weight')
    respiratory = dedupe_by_day(coerce_all(RespiratoryRecord, respiratory), 'check_date', 'respiratory')

    rows = {}

    def row_for(flock_id, d):
        key = (flock_id, d)
        if key not in rows:
            rows[key] = _empty_row(flock_id, d)
        return rows[key]

    mortality_days = set()
    for m in mortality:
        row = row_for(m.flock_id, m.date)
        row['mortality'] = m.mortality_count
        row['culling'] = m.culling_count
        if m.notes:
            row['notes'].append(m.notes)
        mortality_days.add((m.flock_id, m.date))

    for p in production:
        row = row_for(p.flock_id, p.date)
        row['has_production'] = True
        row['eggs'] = p.total_egg_count
        row['egg_weight_kg'] = p.total_egg_weight_kg
        row['feed_kg'] = p.total_feed_consumption
        if p.has_depletion and (p.flock_id, p.date) not in mortality_days:
            row['mortality'] = p.mortality_count or 0
            row['culling'] = p.culling_count or 0
        if p.notes:
            row['notes'].append(p.notes)

    for b in body_weights:
        row = row_for(b.flock_id, b.weighing_date)
        row['body_weight_g'] = b.avg_body_weight_actual
        row['uniformity'] = b.uniformity_percentage

    for r in respiratory:
        row = row_for(r.flock_id, r.check_date)
        row['respiratory_score'] = r.respiratory_score
        row['symptoms'] = r.symptoms
        if r.notes:
            row['notes'].append(r.notes)

    return [rows[k] for k in sorted(rows.keys(), key=lambda k: (str(k[0]), k[1]))]


def daily_row_values(row):
    return {
        'eggs': row['eggs'],
        'egg_weight_kg': row['egg_weight_kg'],
        'feed_kg': row['feed_kg'],
        'mortality': row['mortality'],
        'culling': row['culling'],
        'body_weight_g': row['body_weight_g'],
        'uniformity': row['uniformity'],
        'respiratory_score': row['respiratory_score'],
    }


def aggregate_daily_rows_weekly(rows):
    return aggregate_weekly(rows, daily_row_values, lambda r: r['date'])


def aggregate_respiratory_weekly(records):
    """Weekly average respiratory score and how often each symptom was seen."""
    records = coerce_all(RespiratoryRecord, records)
    buckets = aggregate_weekly(
        records,
        lambda r: {'score': r.respiratory_score},
        lambda r: r.check_date,
    )

    by_key = {}
    for r in records:
        if r.check_date is None:
            continue
        by_key.setdefault(iso_week_key(r.check_date), Counter()).update(r.symptoms)

    result = []
    for b in buckets:
        result.append({
            'year': b.year,
            'week': b.week,
            'label': b.label,
            'checks': b.count('score'),
            'avg_score': b.mean('score'),
            'symptoms': dict(by_key.get(b.key, Counter())),
        })
    return result
