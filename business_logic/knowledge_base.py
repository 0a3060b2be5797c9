"""
Knowledge base: invoice-derived rate insights and agency pricing settings.
"""

import logging
from typing import List, Optional

from models.data_models import InvoiceInsight, PricingSettings, ServiceRate, new_id
from .rate_catalog import INDUSTRY_RATE_FACTOR, RateCatalog

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class KnowledgeBase:
    """
    Holds unverified InvoiceInsights until a user approves or discards them.

    Approval merges the insight into the rate catalog.
    """

    def __init__(self, catalog: RateCatalog, settings: PricingSettings,
                 insights: Optional[List[InvoiceInsight]] = None):
        self.catalog = catalog
        self.settings = settings
        self.insights: List[InvoiceInsight] = list(insights or [])

    def ingest(self, insights: List[InvoiceInsight]) -> int:
        self.insights.extend(insights)
        logger.info(f"Queued {len(insights)} invoice insight(s) for review")
        return len(insights)

    def _pop(self, insight_id: str) -> InvoiceInsight:
        for index, insight in enumerate(self.insights):
            if insight.id == insight_id:
                return self.insights.pop(index)
        raise KeyError(f"Insight {insight_id} not found")

    def approve(self, insight_id: str) -> ServiceRate:
        """
        Merge an insight into the catalog.

        A catalog entry with the same name (case-insensitive) gets the detected
        rate and currency; otherwise a new entry is created.

        Raises:
            KeyError: If the insight is not pending
        """
        insight = self._pop(insight_id)
        existing = self.catalog.find(insight.detected_name)

        if existing is not None:
            existing.current_rate = insight.detected_rate
            existing.currency = insight.detected_currency
            logger.info(f"Updated {existing.name} to {existing.current_rate} {existing.currency.value}")
            return existing

        rate = ServiceRate(
            id=new_id(),
            name=insight.detected_name,
            category=insight.detected_category,
            current_rate=insight.detected_rate,
            industry_rate=insight.detected_rate * INDUSTRY_RATE_FACTOR,
            currency=insight.detected_currency,
            unit=insight.detected_unit
        )
        self.catalog.rates.append(rate)
        logger.info(f"Added {rate.name} from invoice ({insight.source_label})")
        return rate

    def discard(self, insight_id: str) -> InvoiceInsight:
        return self._pop(insight_id)

    def update_settings(self, **changes) -> PricingSettings:
        """
        Raises:
            AttributeError: If a change names an unknown setting
        """
        for name, value in changes.items():
            if not hasattr(self.settings, name):
                raise AttributeError(f"PricingSettings has no field '{name}'")
            setattr(self.settings, name, value)
        return self.settings
