"""
Unit tests for work table parsing.
"""

import unittest
import pandas as pd

from data.parsers import (
    INPUT_MODE_NARRATIVE, INPUT_MODE_TABLE, TABLE_COLUMNS, WorkTableParser
)


class TestWorkTableParser(unittest.TestCase):
    """Test cases for WorkTableParser."""

    def setUp(self):
        self.parser = WorkTableParser()

    def test_parse_paste(self):
        table = self.parser.parse_paste("Reel Editing\t12\t13000\r\nStatic Graphic\t4\t2000\n\n")

        self.assertEqual(list(table.columns), TABLE_COLUMNS)
        self.assertEqual(len(table), 2)
        self.assertEqual(table.iloc[0]['task'], 'Reel Editing')
        self.assertEqual(table.iloc[1]['price'], '2000')

    def test_short_rows_are_padded(self):
        table = self.parser.parse_paste("Strategy call\t2\nReel Editing\t12\t13000")
        self.assertEqual(table.iloc[0]['price'], '')
        self.assertEqual(table.iloc[1]['quantity'], '12')

    def test_extra_columns_are_dropped(self):
        table = self.parser.parse_paste("Reel Editing\t12\t13000\tJanuary\tpaid")
        self.assertEqual(list(table.columns), TABLE_COLUMNS)
        self.assertEqual(table.iloc[0]['price'], '13000')

    def test_quotes_are_kept_literally(self):
        table = self.parser.parse_paste('"Hero" reel\t1\t5000')
        self.assertEqual(table.iloc[0]['task'], '"Hero" reel')

    def test_is_tabular_paste(self):
        self.assertTrue(self.parser.is_tabular_paste("a\tb"))
        self.assertTrue(self.parser.is_tabular_paste("a\nb"))
        self.assertFalse(self.parser.is_tabular_paste("Reel Editing"))

    def test_paste_into_blank_grid_replaces_it(self):
        merged = self.parser.merge_paste(self.parser.empty_table(), "A\t1\t10\nB\t2\t20", 0)
        self.assertEqual(list(merged['task']), ['A', 'B'])

    def test_paste_replaces_target_row(self):
        table = pd.DataFrame([
            {'task': 'Keep', 'quantity': '1', 'price': '10'},
            {'task': 'Replace me', 'quantity': '1', 'price': '10'},
            {'task': 'Tail', 'quantity': '1', 'price': '10'},
        ])
        merged = self.parser.merge_paste(table, "X\t2\t20\nY\t3\t30", 1)
        self.assertEqual(list(merged['task']), ['Keep', 'X', 'Y', 'Tail'])

    def test_table_to_tsv_skips_blank_tasks(self):
        table = pd.DataFrame([
            {'task': 'Reel Editing', 'quantity': '12', 'price': '13000'},
            {'task': '   ', 'quantity': '1', 'price': '5'},
        ])
        self.assertEqual(self.parser.table_to_tsv(table), "Reel Editing\t12\t13000")

    def test_build_work_input(self):
        table = pd.DataFrame([{'task': 'Reel Editing', 'quantity': '12', 'price': '13000'}])
        self.assertEqual(self.parser.build_work_input(INPUT_MODE_TABLE, table, 'ignored'),
                         "Reel Editing\t12\t13000")
        self.assertEqual(self.parser.build_work_input(INPUT_MODE_NARRATIVE, table, 'We made 12 reels'),
                         'We made 12 reels')
        self.assertEqual(self.parser.build_work_input(INPUT_MODE_TABLE, self.parser.empty_table()), '')


if __name__ == '__main__':
    unittest.main()
