"""
Brand billing aggregation and deal health.

"Most recent" is decided by the log sequence number (insertion order), not by
the month label, which is free text and not sortable.
"""

import logging
from typing import Any, Dict, List, Optional

from models.data_models import Brand, Health, WorkLog

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

RECENT_LOG_WINDOW = 6


class AggregationEngine:
    """Computes run-rate revenue and surfaces deal health per brand."""

    def __init__(self, window: int = RECENT_LOG_WINDOW):
        self.window = window

    @staticmethod
    def _brand_logs(brand: Brand, logs: List[WorkLog]) -> List[WorkLog]:
        return sorted((log for log in logs if log.brand_id == brand.id), key=lambda log: log.sequence)

    def recent_logs(self, brand: Brand, logs: List[WorkLog]) -> List[WorkLog]:
        """The last ``window`` logs of a brand, oldest first."""
        return self._brand_logs(brand, logs)[-self.window:]

    def effective_monthly_revenue(self, brand: Brand, logs: List[WorkLog]) -> float:
        """
        Monthly run rate over the most recent logs.

        Multi-month logs are normalized by their period length. A brand
        without logs falls back to its nominal retainer fee.

        Args:
            brand: Brand to aggregate
            logs: Work logs, any brand; filtered here

        Returns:
            Billed revenue per month
        """
        recent = self.recent_logs(brand, logs)
        if not recent:
            return brand.monthly_retainer_fee or 0

        total_billed = sum(log.actual_billed or 0 for log in recent)
        total_months = sum(max(1, log.period_months or 1) for log in recent)
        if total_months == 0:
            return 0
        return total_billed / total_months

    def deal_health(self, brand: Brand, logs: List[WorkLog]) -> Optional[Health]:
        """
        Health of the latest log for the brand, or None when there is no data.

        The value is the one classified with the log; it is never re-derived
        here so the badge always agrees with the stored insight.
        """
        brand_logs = self._brand_logs(brand, logs)
        if not brand_logs:
            return None
        return brand_logs[-1].health

    def brand_summary(self, brand: Brand, logs: List[WorkLog]) -> Dict[str, Any]:
        """Figures shown on a brand's audit card."""
        brand_logs = self._brand_logs(brand, logs)
        effective = self.effective_monthly_revenue(brand, logs)
        nominal = brand.monthly_retainer_fee or 0
        health = self.deal_health(brand, logs)

        return {
            'brand_id': brand.id,
            'brand_name': brand.name,
            'log_count': len(brand_logs),
            'effective_monthly_revenue': effective,
            'nominal_retainer_fee': nominal,
            'revenue_delta': effective - nominal,
            'health': health.value if health else None,
            'total_market_value': sum(log.total_market_value or 0 for log in brand_logs),
            'total_billed': sum(log.actual_billed or 0 for log in brand_logs),
            'total_overage': sum(log.overage_total or 0 for log in brand_logs),
        }
