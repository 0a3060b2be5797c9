"""
File-backed persistence for the application's collections.

Each named collection lives in its own JSON file under the data directory.
A missing or unreadable file means "use the default": the seed catalog,
settings and brands, or an empty list for history, insights and logs.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from models.data_models import (
    Brand, HistoryItem, InvoiceInsight, PricingSettings, ServiceRate, WorkLog
)
from .defaults import default_brands, default_service_rates, default_settings

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


RATES = "rates"
SETTINGS = "settings"
HISTORY = "history"
INVOICE_INSIGHTS = "invoice_insights"
BRANDS = "brands"
WORK_LOGS = "work_logs"

COLLECTIONS = (RATES, SETTINGS, HISTORY, INVOICE_INSIGHTS, BRANDS, WORK_LOGS)


class DataStore:
    """
    Load/save access to every persisted collection.

    Components receive a store instead of reaching for global state, so tests
    can point one at a temporary directory.
    """

    def __init__(self, data_dir: str = ".agency_data"):
        """
        Initialize the DataStore.

        Args:
            data_dir: Directory holding one JSON file per collection
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _collection_path(self, collection: str) -> Path:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        return self.data_dir / f"{collection}.json"

    def _read(self, collection: str) -> Optional[Any]:
        """
        Read raw JSON for a collection.

        Returns:
            Decoded JSON, or None if the file is absent or unreadable
        """
        path = self._collection_path(collection)
        if not path.exists():
            return None

        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading {collection} from {path}: {str(e)}")
            return None

    def _write(self, collection: str, payload: Any):
        """
        Write a collection atomically.

        The payload goes to a sibling temp file first and is then renamed over
        the target, so a reader never sees a half-written collection.
        """
        path = self._collection_path(collection)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{collection}.", suffix=".tmp", dir=str(self.data_dir))
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        logger.info(f"Saved {collection} to {path}")

    def _load_list(self, collection: str, factory: Callable[[Dict[str, Any]], Any],
                   default: Callable[[], List[Any]]) -> List[Any]:
        raw = self._read(collection)
        if not isinstance(raw, list):
            return default()

        items = []
        for entry in raw:
            if not isinstance(entry, dict):
                logger.warning(f"Skipping malformed {collection} entry: {entry!r}")
                continue
            items.append(factory(entry))
        return items

    def load_rates(self) -> List[ServiceRate]:
        return self._load_list(RATES, ServiceRate.from_dict, default_service_rates)

    def save_rates(self, rates: List[ServiceRate]):
        self._write(RATES, [rate.to_dict() for rate in rates])

    def load_settings(self) -> PricingSettings:
        raw = self._read(SETTINGS)
        if not isinstance(raw, dict):
            return default_settings()
        return PricingSettings.from_dict(raw)

    def save_settings(self, settings: PricingSettings):
        self._write(SETTINGS, settings.to_dict())

    def load_history(self) -> List[HistoryItem]:
        return self._load_list(HISTORY, HistoryItem.from_dict, list)

    def save_history(self, history: List[HistoryItem]):
        self._write(HISTORY, [item.to_dict() for item in history])

    def load_invoice_insights(self) -> List[InvoiceInsight]:
        return self._load_list(INVOICE_INSIGHTS, InvoiceInsight.from_dict, list)

    def save_invoice_insights(self, insights: List[InvoiceInsight]):
        self._write(INVOICE_INSIGHTS, [insight.to_dict() for insight in insights])

    def load_brands(self) -> List[Brand]:
        return self._load_list(BRANDS, Brand.from_dict, default_brands)

    def save_brands(self, brands: List[Brand]):
        self._write(BRANDS, [brand.to_dict() for brand in brands])

    def load_work_logs(self) -> List[WorkLog]:
        logs = self._load_list(WORK_LOGS, WorkLog.from_dict, list)

        # Files written before sequence numbers existed are in insertion order
        if logs and all(log.sequence == 0 for log in logs):
            for index, log in enumerate(logs, start=1):
                log.sequence = index
        return logs

    def save_work_logs(self, logs: List[WorkLog]):
        self._write(WORK_LOGS, [log.to_dict() for log in logs])

    def has_collection(self, collection: str) -> bool:
        return self._collection_path(collection).exists()
