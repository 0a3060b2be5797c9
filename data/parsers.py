"""
Parsers for work-history input pasted from spreadsheets.
"""

import csv
import pandas as pd
import logging
from io import StringIO

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


TABLE_COLUMNS = ['task', 'quantity', 'price']

INPUT_MODE_TABLE = 'table'
INPUT_MODE_SPREADSHEET = 'spreadsheet'
INPUT_MODE_NARRATIVE = 'narrative'


class WorkTableParser:
    """
    Converts work-history grids to and from the tab-separated text sent to
    the AI mapper.

    The grid has three columns: task, quantity and price. Cells are kept as
    text; the AI mapper reads the numbers.
    """

    @staticmethod
    def empty_table() -> pd.DataFrame:
        """A grid with a single blank row."""
        return pd.DataFrame([{column: '' for column in TABLE_COLUMNS}], columns=TABLE_COLUMNS)

    @staticmethod
    def is_tabular_paste(text: str) -> bool:
        """Plain text without tabs or line breaks is an ordinary cell edit."""
        return '\t' in text or '\n' in text

    def parse_paste(self, text: str) -> pd.DataFrame:
        """
        Split pasted spreadsheet text into grid rows.

        Args:
            text: Clipboard text, rows separated by newlines, cells by tabs

        Returns:
            DataFrame with task, quantity and price columns
        """
        lines = [line for line in text.splitlines() if line.strip()]
        if not lines:
            return self.empty_table()

        try:
            df = pd.read_csv(
                StringIO('\n'.join(lines)),
                sep='\t',
                header=None,
                dtype=str,
                keep_default_na=False,
                names=list(range(max(len(line.split('\t')) for line in lines))),
                quoting=csv.QUOTE_NONE,
                engine='python'
            )
        except Exception as e:
            logger.error(f"Error parsing pasted table: {str(e)}")
            raise ValueError(f"Failed to parse pasted table: {str(e)}")

        # Extra columns are dropped, missing ones padded
        for index in range(len(TABLE_COLUMNS)):
            if index not in df.columns:
                df[index] = ''
        df = df[[0, 1, 2]]
        df.columns = TABLE_COLUMNS
        df = df.fillna('').astype(str)

        logger.info(f"Parsed {len(df)} rows from pasted table")
        return df.reset_index(drop=True)

    def merge_paste(self, table: pd.DataFrame, text: str, row_index: int) -> pd.DataFrame:
        """
        Apply a paste at ``row_index``.

        An untouched single-row grid is replaced entirely; otherwise the
        target row is replaced by the pasted rows.
        """
        pasted = self.parse_paste(text)
        if len(table) == 1 and not str(table.iloc[0]['task']).strip():
            return pasted

        before = table.iloc[:row_index]
        after = table.iloc[row_index + 1:]
        return pd.concat([before, pasted, after], ignore_index=True)

    def table_to_tsv(self, table: pd.DataFrame) -> str:
        """Serialize rows with a task into tab-separated lines."""
        if table is None or table.empty:
            return ''

        rows = table.fillna('').astype(str)
        rows = rows[rows['task'].str.strip() != '']
        return '\n'.join(
            f"{row['task']}\t{row['quantity']}\t{row['price']}"
            for _, row in rows.iterrows()
        )

    def build_work_input(self, mode: str, table: pd.DataFrame = None, text: str = '') -> str:
        """
        Produce the text sent to the AI mapper for the chosen input mode.

        Returns:
            Tab-separated rows for the grid, otherwise the raw text
        """
        if mode == INPUT_MODE_TABLE:
            return self.table_to_tsv(table)
        return text or ''
