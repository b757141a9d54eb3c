import random
import unittest
from datetime import date, timedelta

from models import ProductionRecord, MortalityRecord, BodyWeightSample, RespiratoryRecord
from weekly import (
    WeeklyBucket, aggregate_weekly, aggregate_by_age_week, dedupe_by_day,
    merge_daily_records, aggregate_daily_rows_weekly, aggregate_respiratory_weekly,
)


def eggs_of(r):
    return {'eggs': r.total_egg_count, 'feed': r.total_feed_consumption}


def date_of(r):
    return r.date


class AggregateWeeklyTestCase(unittest.TestCase):
    def test_buckets_sorted_across_year_boundary(self):
        records = [
            ProductionRecord(flock_id=1, date=date(2025, 1, 6), normal_eggs=30),
            ProductionRecord(flock_id=1, date=date(2024, 12, 23), normal_eggs=10),
            ProductionRecord(flock_id=1, date=date(2024, 12, 31), normal_eggs=20),
        ]
        buckets = aggregate_weekly(records, eggs_of, date_of)

        self.assertEqual([b.key for b in buckets], [(2024, 52), (2025, 1), (2025, 2)])
        self.assertEqual([b.label for b in buckets], ['2024-W52', '2025-W01', '2025-W02'])
        self.assertEqual([b.total('eggs') for b in buckets], [10, 20, 30])

    def test_single_day_weeks_keep_raw_values(self):
        records = [
            ProductionRecord(flock_id=1, date=date(2024, 3, 4), normal_eggs=900),
            ProductionRecord(flock_id=1, date=date(2024, 3, 11), normal_eggs=880),
        ]
        buckets = aggregate_weekly(records, eggs_of, date_of)
        self.assertEqual([b.total('eggs') for b in buckets], [900, 880])
        self.assertEqual([b.day_count for b in buckets], [1, 1])

    def test_input_order_does_not_matter(self):
        start = date(2024, 2, 26)
        records = [
            ProductionRecord(flock_id=1, date=start + timedelta(days=i), normal_eggs=100 + i)
            for i in range(21)
        ]
        shuffled = list(records)
        random.Random(4).shuffle(shuffled)

        ordered = aggregate_weekly(records, eggs_of, date_of)
        mixed = aggregate_weekly(shuffled, eggs_of, date_of)

        self.assertEqual([b.key for b in ordered], [b.key for b in mixed])
        self.assertEqual([b.total('eggs') for b in ordered], [b.total('eggs') for b in mixed])
        self.assertEqual(sum(b.total('eggs') for b in ordered), sum(100 + i for i in range(21)))

    def test_records_without_date_are_skipped(self):
        buckets = aggregate_weekly([{'d': None, 'v': 1}], lambda r: {'v': r['v']}, lambda r: r['d'])
        self.assertEqual(buckets, [])


class WeeklyBucketTestCase(unittest.TestCase):
    def test_none_values_are_not_counted(self):
        b = WeeklyBucket((2024, 10))
        b.add(date(2024, 3, 4), {'bw': 1800})
        b.add(date(2024, 3, 5), {'bw': None})
        b.add(date(2024, 3, 6), {'bw': 1900})

        self.assertEqual(b.count('bw'), 2)
        self.assertEqual(b.mean('bw'), 1850)
        self.assertEqual(b.day_count, 3)
        self.assertEqual(b.first_date, date(2024, 3, 4))
        self.assertEqual(b.last_date, date(2024, 3, 6))

    def test_empty_mean_is_none(self):
        b = WeeklyBucket(3)
        self.assertIsNone(b.mean('bw'))
        self.assertEqual(b.total('bw'), 0)
        self.assertEqual(b.label, 'Week 3')
        self.assertIsNone(b.year)
        self.assertEqual(b.week, 3)


class AgeWeekTestCase(unittest.TestCase):
    def test_dense_axis_with_gaps(self):
        samples = [
            BodyWeightSample(flock_id=1, weighing_date=date(2024, 1, 8), age_days=7, avg_body_weight_actual=200),
            BodyWeightSample(flock_id=1, weighing_date=date(2024, 1, 11), age_days=10, avg_body_weight_actual=220),
            BodyWeightSample(flock_id=1, weighing_date=date(2024, 1, 22), age_days=21, avg_body_weight_actual=400),
            BodyWeightSample(flock_id=1, weighing_date=date(2024, 3, 1), age_days=60, avg_body_weight_actual=900),
        ]
        series = aggregate_by_age_week(samples, max_weeks=5)
        self.assertEqual(series, [None, 210, None, 400, None, None])

    def test_no_samples(self):
        self.assertEqual(aggregate_by_age_week([], max_weeks=2), [None, None, None])


class DedupeTestCase(unittest.TestCase):
    def test_last_duplicate_wins(self):
        records = [
            ProductionRecord(flock_id=1, date=date(2024, 3, 4), normal_eggs=1),
            ProductionRecord(flock_id=2, date=date(2024, 3, 4), normal_eggs=2),
            ProductionRecord(flock_id=1, date=date(2024, 3, 4), normal_eggs=3),
        ]
        kept = dedupe_by_day(records)
        self.assertEqual(sorted((r.flock_id, r.normal_eggs) for r in kept), [(1, 3), (2, 2)])

    def test_missing_dates_are_dropped(self):
        kept = dedupe_by_day([ProductionRecord(flock_id=1, date=None)])
        self.assertEqual(kept, [])


class MergeDailyRecordsTestCase(unittest.TestCase):
    def test_join_on_flock_and_date(self):
        production = [
            ProductionRecord(flock_id=1, date=date(2024, 3, 4), normal_eggs=900),
            ProductionRecord(flock_id=1, date=date(2024, 3, 5), normal_eggs=910),
        ]
        mortality = [
            MortalityRecord(flock_id=1, date=date(2024, 3, 5), mortality_count=2, culling_count=1),
            MortalityRecord(flock_id=1, date=date(2024, 3, 6), mortality_count=1),
        ]
        body_weights = [
            {'flock_id': 1, 'weighing_date': '2024-03-05', 'age_days': 190,
             'avg_body_weight_actual': 1850, 'uniformity_percentage': 82.5},
        ]
        rows = merge_daily_records(production, mortality, body_weights)

        self.assertEqual([r['date'] for r in rows], [date(2024, 3, 4), date(2024, 3, 5), date(2024, 3, 6)])

        # production day without a mortality record
        self.assertEqual((rows[0]['mortality'], rows[0]['culling']), (0, 0))
        self.assertIsNone(rows[0]['body_weight_g'])

        self.assertEqual(rows[1]['eggs'], 910)
        self.assertEqual((rows[1]['mortality'], rows[1]['culling']), (2, 1))
        self.assertEqual(rows[1]['body_weight_g'], 1850)
        self.assertEqual(rows[1]['uniformity'], 82.5)

        # mortality-only day still shows up
        self.assertFalse(rows[2]['has_production'])
        self.assertIsNone(rows[2]['eggs'])
        self.assertEqual(rows[2]['mortality'], 1)

    def test_weekly_rows_skip_days_without_production(self):
        rows = merge_daily_records(
            [ProductionRecord(flock_id=1, date=date(2024, 3, 4), normal_eggs=900)],
            [MortalityRecord(flock_id=1, date=date(2024, 3, 6), mortality_count=4)],
        )
        bucket, = aggregate_daily_rows_weekly(rows)
        self.assertEqual(bucket.count('eggs'), 1)
        self.assertEqual(bucket.total('mortality'), 4)
        self.assertEqual(bucket.day_count, 2)


class RespiratoryWeeklyTestCase(unittest.TestCase):
    def test_average_score_and_symptom_counts(self):
        records = [
            RespiratoryRecord(flock_id=1, check_date=date(2024, 3, 4), respiratory_score=1,
                              symptoms=frozenset({'sneezing'})),
            {'flock_id': 1, 'check_date': '2024-03-06', 'respiratory_score': 3,
             'symptoms': ['sneezing', 'rales']},
            {'flock_id': 1, 'check_date': '2024-03-12', 'respiratory_score': 9},
        ]
        weeks = aggregate_respiratory_weekly(records)

        self.assertEqual([w['label'] for w in weeks], ['2024-W10', '2024-W11'])
        self.assertEqual(weeks[0]['checks'], 2)
        self.assertEqual(weeks[0]['avg_score'], 2)
        self.assertEqual(weeks[0]['symptoms'], {'sneezing': 2, 'rales': 1})
        # score is clamped to the 0-5 scale
        self.assertEqual(weeks[1]['avg_score'], 5)
        self.assertEqual(weeks[1]['symptoms'], {})


if __name__ == '__main__':
    unittest.main()
