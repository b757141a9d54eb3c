import unittest

import pandas as pd

from models import Band, BreedStandard, BreedStandardPoint
from standards import StandardTable, StandardLookup, as_lookup, standards_from_frame, point_at


def make_table():
    standards = [
        {'id': 1, 'breed': 'Lohmann Brown', 'name': 'Lohmann Brown Classic'},
        {'id': 2, 'breed': 'Hy-Line W-36', 'name': 'Hy-Line W-36'},
    ]
    points = [
        {'standard_id': 1, 'age_weeks': 20, 'hen_day_production_percent': 10.0, 'body_weight_g': 1600},
        {'standard_id': 1, 'age_weeks': 21, 'hen_day_production_percent': 35.0,
         'body_weight_g_min': 1650, 'body_weight_g_max': 1750},
        {'standard_id': 2, 'age_weeks': 20, 'hen_day_production_percent': 20.0},
    ]
    return StandardTable(standards, points)


class StandardTableTestCase(unittest.TestCase):
    def test_exact_breed_match(self):
        table = make_table()
        self.assertEqual(table.find_standard_for_breed('Lohmann Brown'), 1)
        self.assertEqual(table.find_standard_for_breed('Hy-Line W-36'), 2)

    def test_no_fuzzy_breed_match(self):
        table = make_table()
        self.assertIsNone(table.find_standard_for_breed('lohmann brown'))
        self.assertIsNone(table.find_standard_for_breed('Lohmann'))
        self.assertIsNone(table.find_standard_for_breed('ISA Brown'))

    def test_point_at_exact_week(self):
        table = make_table()
        self.assertEqual(table.point_at(1, 20, 'hen_day_production_percent'), 10.0)
        self.assertEqual(table.point_at(2, 20, 'hen_day_production_percent'), 20.0)

    def test_point_at_missing_week_is_none(self):
        table = make_table()
        # no interpolation between 20 and 21, and nothing past 21
        self.assertIsNone(table.point_at(1, 22, 'hen_day_production_percent'))
        self.assertIsNone(table.point_at(1, 20, 'egg_weight_g'))
        self.assertIsNone(table.point_at(None, 20, 'hen_day_production_percent'))

    def test_band_values(self):
        table = make_table()
        self.assertEqual(table.point_at(1, 21, 'body_weight_g'), Band(1650.0, 1750.0))
        self.assertTrue(table.lookup(1).has_band('body_weight_g'))
        self.assertFalse(table.lookup(1).has_band('hen_day_production_percent'))

    def test_lookup_for_breed(self):
        table = make_table()
        self.assertEqual(table.lookup_for_breed('Hy-Line W-36').value_at(20, 'hen_day_production_percent'), 20.0)
        self.assertFalse(table.lookup_for_breed('ISA Brown'))

    def test_tables_do_not_share_points(self):
        a = StandardTable([BreedStandard(1, 'X')], [BreedStandardPoint(1, 30, {'fcr': 2.1})])
        b = StandardTable([BreedStandard(1, 'X')], [BreedStandardPoint(1, 30, {'fcr': 1.9})])
        self.assertEqual(a.point_at(1, 30, 'fcr'), 2.1)
        self.assertEqual(b.point_at(1, 30, 'fcr'), 1.9)

    def test_clear_rebuilds_lookups(self):
        table = make_table()
        first = table.lookup(1)
        table.clear()
        self.assertIsNot(table.lookup(1), first)


class StandardLookupTestCase(unittest.TestCase):
    def test_as_lookup(self):
        self.assertFalse(as_lookup(None))
        lookup = as_lookup([{'standard_id': 1, 'age_weeks': 5, 'body_weight_g': 450}])
        self.assertEqual(lookup.value_at(5, 'body_weight_g'), 450.0)
        self.assertIs(as_lookup(lookup), lookup)

    def test_point_at_helper(self):
        points = [BreedStandardPoint(1, 5, {'body_weight_g': 450.0})]
        self.assertEqual(point_at(points, 5, 'body_weight_g'), 450.0)
        self.assertIsNone(point_at(points, 6, 'body_weight_g'))

    def test_clear(self):
        lookup = StandardLookup([BreedStandardPoint(1, 5, {'body_weight_g': 450.0})])
        self.assertEqual(lookup.value_at(5, 'body_weight_g'), 450.0)
        lookup.clear()
        self.assertEqual(lookup.value_at(5, 'body_weight_g'), 450.0)

    def test_first_row_for_a_week_wins(self):
        lookup = StandardLookup([
            {'standard_id': 1, 'age_weeks': 30, 'hen_day_production_percent': 94.0},
            {'standard_id': 1, 'age_weeks': 30, 'hen_day_production_percent': 50.0},
        ])
        self.assertEqual(lookup.value_at(30, 'hen_day_production_percent'), 94.0)

    def test_point_from_dict_with_comma_decimals(self):
        p = BreedStandardPoint.from_dict({'standard_id': 1, 'age_weeks': '30', 'fcr': '2,05'})
        self.assertEqual(p.age_weeks, 30)
        self.assertEqual(p.get('fcr'), 2.05)


class StandardsFromFrameTestCase(unittest.TestCase):
    def test_frame_with_values_and_bands(self):
        df = pd.DataFrame({
            'age_weeks': [18, 19, None, 20],
            'hen_day_production_percent': [None, 5.0, 1.0, 30.0],
            'body_weight_g_min': [1450, 1500, None, None],
            'body_weight_g_max': [1550, 1600, None, None],
            'body_weight_g': [None, None, None, 1650],
        })
        points = standards_from_frame(df, standard_id=7)

        self.assertEqual([p.age_weeks for p in points], [18, 19, 20])
        self.assertTrue(all(p.standard_id == 7 for p in points))
        self.assertIsNone(points[0].get('hen_day_production_percent'))
        self.assertEqual(points[0].get('body_weight_g'), Band(1450.0, 1550.0))
        self.assertEqual(points[1].get('hen_day_production_percent'), 5.0)
        self.assertEqual(points[2].get('body_weight_g'), 1650.0)

    def test_frame_without_age_column(self):
        with self.assertRaises(ValueError):
            standards_from_frame(pd.DataFrame({'week': [1]}), standard_id=1)


if __name__ == '__main__':
    unittest.main()
