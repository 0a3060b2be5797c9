"""
Unit tests for the file-backed DataStore.
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from data.store import DataStore
from models.data_models import (
    BillingModel, Brand, Category, Currency, EstimateItem, EstimateResponse, Health,
    HistoryItem, HistoryStatus, Region, ServiceRate, WorkLog
)


class TestDataStore(unittest.TestCase):
    """Test cases for DataStore."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.store = DataStore(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_defaults_when_nothing_saved(self):
        self.assertEqual(len(self.store.load_rates()), 9)
        self.assertEqual(self.store.load_settings().agency_multiplier, 2.5)
        self.assertEqual([b.name for b in self.store.load_brands()][:2], ['CashBook', 'Shumee'])
        self.assertEqual(self.store.load_history(), [])
        self.assertEqual(self.store.load_invoice_insights(), [])
        self.assertEqual(self.store.load_work_logs(), [])

    def test_brand_round_trip_keeps_learned_rates(self):
        brand = Brand('b9', 'Mason George', BillingModel.HYBRID, Currency.USD, Region.INTERNATIONAL,
                      monthly_retainer_fee=45000, retainer_scope_limit='Video Editing')
        brand.learned_rates.append(
            ServiceRate('l1', 'Reel Editing', Category.VIDEO, 1200, 1800, Currency.USD, 'per reel')
        )
        self.store.save_brands([brand])

        loaded = self.store.load_brands()
        self.assertEqual(len(loaded), 1)
        self.assertEqual(loaded[0].learned_rates[0].name, 'Reel Editing')
        self.assertEqual(loaded[0].billing_model, BillingModel.HYBRID)

    def test_files_use_camel_case_keys(self):
        self.store.save_rates([ServiceRate('1', 'Reel Editing', Category.VIDEO, 1000, 4000,
                                           Currency.INR, 'per reel')])
        with open(Path(self.temp_dir) / 'rates.json', encoding='utf-8') as f:
            raw = json.load(f)
        self.assertEqual(raw[0]['currentRate'], 1000)
        self.assertEqual(raw[0]['category'], 'Video')

    def test_work_logs_round_trip(self):
        log = WorkLog('w1', 'b1', 'March 2025', 2,
                      [EstimateItem('Reel Editing', 4, 'per reel', 1000, 4000, is_overage=True)],
                      4000, 4000, 84000, Health.LOSS, 'Under-billed', sequence=5)
        self.store.save_work_logs([log])

        loaded = self.store.load_work_logs()[0]
        self.assertEqual(loaded.sequence, 5)
        self.assertEqual(loaded.period_months, 2)
        self.assertEqual(loaded.health, Health.LOSS)
        self.assertTrue(loaded.deliverables[0].is_overage)

    def test_legacy_logs_get_period_and_sequence(self):
        legacy = [
            {'id': 'a', 'brandId': 'b1', 'month': 'Jan', 'actualBilled': 100, 'health': 'Healthy'},
            {'id': 'b', 'brandId': 'b1', 'month': 'Feb', 'actualBilled': 200, 'health': 'Loss'},
        ]
        with open(Path(self.temp_dir) / 'work_logs.json', 'w', encoding='utf-8') as f:
            json.dump(legacy, f)

        logs = self.store.load_work_logs()
        self.assertEqual([log.period_months for log in logs], [1, 1])
        self.assertEqual([log.sequence for log in logs], [1, 2])
        self.assertEqual(logs[0].deliverables, [])

    def test_quoted_overage_flags(self):
        saved = [{
            'id': 'w1', 'brandId': 'b2', 'month': 'March 2025', 'periodMonths': 1, 'health': 'Healthy',
            'deliverables': [
                {'service': 'Reel Editing', 'total': 4000, 'isOverage': 'false'},
                {'service': 'Podcast Edit', 'total': 3000, 'isOverage': 'TRUE'},
                {'service': 'Static Graphic', 'total': 500, 'isOverage': 1},
                {'service': 'Motion Graphics', 'total': 750},
            ]
        }]
        with open(Path(self.temp_dir) / 'work_logs.json', 'w', encoding='utf-8') as f:
            json.dump(saved, f)

        flags = [item.is_overage for item in self.store.load_work_logs()[0].deliverables]
        self.assertEqual(flags, [False, True, False, False])

        self.assertIs(EstimateItem.from_dict({'service': 'Reel Editing', 'isOverage': True}).is_overage, True)

    def test_corrupt_file_falls_back_to_default(self):
        with open(Path(self.temp_dir) / 'history.json', 'w', encoding='utf-8') as f:
            f.write('{not json')
        self.assertEqual(self.store.load_history(), [])

    def test_history_round_trip(self):
        estimate = EstimateResponse([], 12000, 'INR', 'Lead with reels', raw_input='12 reels')
        item = HistoryItem('h1', 1735689600000, Region.INDIA, estimate, HistoryStatus.SENT,
                           client_name='Shumee')
        self.store.save_history([item])

        loaded = self.store.load_history()[0]
        self.assertEqual(loaded.status, HistoryStatus.SENT)
        self.assertEqual(loaded.final_estimate.raw_input, '12 reels')

    def test_no_temp_files_left_behind(self):
        self.store.save_history([])
        leftovers = [p.name for p in Path(self.temp_dir).iterdir() if p.name.endswith('.tmp')]
        self.assertEqual(leftovers, [])

    def test_unknown_collection(self):
        with self.assertRaises(ValueError):
            self.store.has_collection('sessions')


if __name__ == '__main__':
    unittest.main()
