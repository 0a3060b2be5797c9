"""
Saved pricing estimates.
"""

import logging
import time
from typing import List, Optional

from models.data_models import (
    Brand, EstimateResponse, HistoryItem, HistoryStatus, Region, new_id
)

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class EstimateHistory:
    """Append-only list of HistoryItems, oldest first."""

    def __init__(self, items: Optional[List[HistoryItem]] = None):
        self.items: List[HistoryItem] = list(items or [])

    def save_estimate(self, estimate: EstimateResponse, region: Region, brand: Optional[Brand] = None,
                      client_name: Optional[str] = None, notes: Optional[str] = None) -> HistoryItem:
        """
        Snapshot an estimate as a Draft.

        The client name is the brand's name when a brand is given, otherwise
        the supplied name, otherwise "Unnamed Client".
        """
        name = brand.name if brand else (client_name or "").strip()
        item = HistoryItem(
            id=new_id(),
            timestamp=int(time.time() * 1000),
            region=region,
            final_estimate=estimate,
            status=HistoryStatus.DRAFT,
            client_name=name or "Unnamed Client",
            brand_id=brand.id if brand else None,
            notes=notes
        )
        self.items.append(item)
        logger.info(f"Saved estimate for {item.client_name}: {estimate.total_estimate:,.2f} {estimate.currency}")
        return item

    def delete(self, item_id: str) -> bool:
        remaining = [item for item in self.items if item.id != item_id]
        removed = len(remaining) != len(self.items)
        self.items = remaining
        return removed

    def update_status(self, item_id: str, status: HistoryStatus) -> HistoryItem:
        """
        Raises:
            KeyError: If no item has ``item_id``
        """
        for item in self.items:
            if item.id == item_id:
                item.status = status
                return item
        raise KeyError(f"History item {item_id} not found")

    def list_recent(self) -> List[HistoryItem]:
        """Newest first, for display."""
        return list(reversed(self.items))
