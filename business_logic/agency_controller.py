"""
Agency Controller - orchestrates every user-initiated action.

This module wires the persisted collections to the catalog, registry, work
log store, aggregation engine and AI mapper, and reports each action back to
the UI in one shape: (success, result, message, notification).
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from models.data_models import (
    Attachment, BillingModel, Brand, Category, Currency, EstimateResponse,
    HistoryStatus, PendingLogReview, Region
)
from data.store import BRANDS, HISTORY, INVOICE_INSIGHTS, RATES, SETTINGS, WORK_LOGS, DataStore
from .ai_mapper import AIMapper
from .aggregation import AggregationEngine
from .brand_registry import BrandRegistry
from .error_handler import error_handler
from .estimate_history import EstimateHistory
from .knowledge_base import KnowledgeBase
from .rate_catalog import RateCatalog
from .work_log_store import WorkLogStore

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ActionResult = Tuple[bool, Any, str, Optional[Dict[str, Any]]]

# Returned when input is rejected locally: no remote call, no notification
REJECTED: ActionResult = (False, None, "", None)


class AgencyController:
    """
    Main controller for the rate desk.

    State lives in memory and is written back to the store after each
    mutation. A failed action restores the in-memory state it started from
    and rewrites any collection it had already saved, so neither memory nor
    disk keeps a partial change.
    """

    def __init__(self, store: Optional[DataStore] = None, mapper: Optional[AIMapper] = None,
                 testing_mode: bool = False):
        """
        Initialize the controller.

        Args:
            store: DataStore to load from and save to
            mapper: AIMapper instance; built from configuration when omitted
            testing_mode: Skip OpenAI initialization for testing
        """
        self.store = store or DataStore()
        self.mapper = mapper or AIMapper(skip_openai_init=testing_mode)

        self.catalog = RateCatalog(self.store.load_rates())
        self.settings = self.store.load_settings()
        self.registry = BrandRegistry(self.store.load_brands())
        self.work_logs = WorkLogStore(self.store.load_work_logs())
        self.history = EstimateHistory(self.store.load_history())
        self.knowledge_base = KnowledgeBase(self.catalog, self.settings, self.store.load_invoice_insights())
        self.aggregation = AggregationEngine()

        logger.info("AgencyController initialized")

    # State and persistence

    def _snapshot(self) -> Dict[str, Any]:
        # One deepcopy call so shared references stay shared in the copy
        return copy.deepcopy({
            RATES: self.catalog.rates,
            SETTINGS: self.settings,
            BRANDS: self.registry.brands,
            WORK_LOGS: self.work_logs.logs,
            HISTORY: self.history.items,
            INVOICE_INSIGHTS: self.knowledge_base.insights,
        })

    def _restore(self, snapshot: Dict[str, Any]):
        self.catalog.rates = snapshot[RATES]
        # settings is shared with the knowledge base, so restore it in place
        vars(self.settings).update(vars(snapshot[SETTINGS]))
        self.registry.brands = snapshot[BRANDS]
        self.work_logs.logs = snapshot[WORK_LOGS]
        self.history.items = snapshot[HISTORY]
        self.knowledge_base.insights = snapshot[INVOICE_INSIGHTS]

    def _save(self, collection: str):
        savers = {
            RATES: lambda: self.store.save_rates(self.catalog.rates),
            SETTINGS: lambda: self.store.save_settings(self.settings),
            BRANDS: lambda: self.store.save_brands(self.registry.brands),
            WORK_LOGS: lambda: self.store.save_work_logs(self.work_logs.logs),
            HISTORY: lambda: self.store.save_history(self.history.items),
            INVOICE_INSIGHTS: lambda: self.store.save_invoice_insights(self.knowledge_base.insights),
        }
        savers[collection]()

    def _transaction(self, context: str, mutate: Callable[[], Any], *collections: str) -> ActionResult:
        """
        Apply ``mutate`` and save ``collections`` in order, all or nothing.

        Args:
            context: Action name used in logs and notifications
            mutate: Changes in-memory state and returns the action's result
            collections: Collections to write after the change

        Returns:
            (True, result, "", None) on success, otherwise a failure tuple
            with the prior state restored
        """
        snapshot = self._snapshot()
        written = []
        try:
            result = mutate()
            for collection in collections:
                self._save(collection)
                written.append(collection)
        except Exception as e:
            self._restore(snapshot)
            self._rewrite(written, context)
            return self._notify_failure(e, context)
        return True, result, "", None

    def _rewrite(self, collections: List[str], context: str):
        """Put already-written collections back to their restored state."""
        for collection in collections:
            try:
                self._save(collection)
            except Exception as e:
                logger.error(f"{context}: could not restore {collection} on disk: {str(e)}")

    def _notify_failure(self, error: Exception, context: str) -> ActionResult:
        error_info = error_handler.classify_error(error, context)
        error_handler.log_error(error_info, context)
        return False, None, error_info.user_message, error_handler.create_user_notification(error_info)

    def _mapper_failure(self, result) -> ActionResult:
        # The mapper has already logged the error
        return False, None, result.error.user_message, error_handler.create_user_notification(result.error)

    def _brand_or_none(self, brand_id: Optional[str]) -> Optional[Brand]:
        return self.registry.get_brand(brand_id) if brand_id else None

    # Estimator

    def run_estimate(self, scope_text: str, region: Region, brand_id: Optional[str] = None,
                     image: Optional[Attachment] = None) -> ActionResult:
        """
        Price a scope of work.

        A selected brand's region overrides the ``region`` argument.
        """
        if not (scope_text or "").strip() and image is None:
            return REJECTED

        brand = self._brand_or_none(brand_id)
        result = self.mapper.estimate(
            scope_text or "",
            brand.region if brand else region,
            self.catalog.effective_rates(brand),
            self.settings,
            brand=brand,
            image=image
        )
        if not result.ok:
            return self._mapper_failure(result)

        estimate = result.value
        return True, estimate, f"Estimated {len(estimate.items)} line item(s).", None

    def refine_estimate(self, scope_text: str, refinement: str, current: Optional[EstimateResponse],
                        region: Region, brand_id: Optional[str] = None) -> ActionResult:
        """Propose a revised estimate; adopting it is the caller's choice."""
        if not (refinement or "").strip() or current is None:
            return REJECTED

        brand = self._brand_or_none(brand_id)
        result = self.mapper.refine_estimate(
            scope_text or "", refinement, current,
            brand.region if brand else region,
            self.catalog.effective_rates(brand),
            self.settings,
            brand=brand
        )
        if not result.ok:
            return self._mapper_failure(result)
        return True, result.value, "Refinement proposed.", None

    # History

    def save_estimate(self, estimate: EstimateResponse, region: Region, brand_id: Optional[str] = None,
                      client_name: Optional[str] = None) -> ActionResult:
        if estimate is None:
            return REJECTED

        brand = self._brand_or_none(brand_id)
        success, item, message, notification = self._transaction(
            "Save estimate",
            lambda: self.history.save_estimate(estimate, brand.region if brand else region, brand=brand,
                                               client_name=client_name),
            HISTORY
        )
        if not success:
            return success, item, message, notification
        return True, item, "Saved!", None

    def delete_history(self, item_id: str) -> ActionResult:
        if not any(item.id == item_id for item in self.history.items):
            return REJECTED

        success, _, message, notification = self._transaction(
            "Delete estimate", lambda: self.history.delete(item_id), HISTORY
        )
        if not success:
            return success, None, message, notification
        return True, item_id, "Estimate deleted.", None

    def update_history_status(self, item_id: str, status: HistoryStatus) -> ActionResult:
        success, item, message, notification = self._transaction(
            "Update estimate status", lambda: self.history.update_status(item_id, status), HISTORY
        )
        if not success:
            return success, item, message, notification
        return True, item, f"Marked as {status.value}.", None

    # Brands and work logs

    def create_brand(self, name: str, billing_model: BillingModel = BillingModel.RETAINER,
                     monthly_retainer_fee: Optional[float] = None, retainer_scope_limit: str = "",
                     currency: Currency = Currency.INR, region: Region = Region.INDIA) -> ActionResult:
        if not (name or "").strip():
            return REJECTED

        success, brand, message, notification = self._transaction(
            "Create brand",
            lambda: self.registry.create_brand(name, billing_model, monthly_retainer_fee, retainer_scope_limit,
                                               currency, region),
            BRANDS
        )
        if not success:
            return success, brand, message, notification
        return True, brand, f"Added {brand.name}.", None

    def update_brand(self, brand_id: str, **changes) -> ActionResult:
        """Edit a brand's fields, e.g. retainer fee or scope."""
        success, brand, message, notification = self._transaction(
            "Update brand", lambda: self.registry.update_brand(brand_id, **changes), BRANDS
        )
        if not success:
            return success, brand, message, notification
        return True, brand, f"Updated {brand.name}.", None

    def analyze_work_log(self, brand_id: str, raw_text: str, period_months: int) -> ActionResult:
        """
        Ask the AI mapper to standardize a work table.

        Nothing is persisted; the review is confirmed separately.
        """
        brand = self._brand_or_none(brand_id)
        if brand is None or not (raw_text or "").strip():
            return REJECTED

        result = self.mapper.analyze_work_log(brand, raw_text, self.catalog.effective_rates(brand),
                                              period_months)
        if not result.ok:
            return self._mapper_failure(result)
        return True, result.value, "Review the standardized deliverables before confirming.", None

    def confirm_pending_log(self, brand_id: str, review: Optional[PendingLogReview], period_months: int,
                            month_label: str, raw_input: str = "") -> ActionResult:
        """
        Save a reviewed work log and the brand rates learned from it.

        Work logs are written before brands. If either write fails, the log
        and the learned rates are both undone, so confirming again cannot
        produce a duplicate period.
        """
        brand = self._brand_or_none(brand_id)
        if brand is None or review is None:
            return REJECTED

        success, log, message, notification = self._transaction(
            "Save work log",
            lambda: self.work_logs.confirm_log(brand, review, period_months, month_label, raw_input)[0],
            WORK_LOGS,
            BRANDS
        )
        if not success:
            return success, log, message, notification
        return True, log, f"Logged {month_label} for {brand.name}.", None

    def delete_work_log(self, log_id: str) -> ActionResult:
        if not any(log.id == log_id for log in self.work_logs.logs):
            return REJECTED

        success, _, message, notification = self._transaction(
            "Delete work log", lambda: self.work_logs.delete_log(log_id), WORK_LOGS
        )
        if not success:
            return success, None, message, notification
        return True, log_id, "Log deleted.", None

    def brand_summaries(self) -> List[Dict[str, Any]]:
        """Audit figures for every brand."""
        return [self.aggregation.brand_summary(brand, self.work_logs.logs)
                for brand in self.registry.list_brands()]

    # Knowledge base

    def ingest_invoice(self, text: str, file: Optional[Attachment] = None) -> ActionResult:
        if not (text or "").strip() and file is None:
            return REJECTED

        result = self.mapper.analyze_invoice(text or "", file)
        if not result.ok:
            return self._mapper_failure(result)

        insights = result.value
        success, _, message, notification = self._transaction(
            "Save invoice insights", lambda: self.knowledge_base.ingest(insights), INVOICE_INSIGHTS
        )
        if not success:
            return success, None, message, notification
        return True, insights, f"Detected {len(insights)} rate(s).", None

    def approve_insight(self, insight_id: str) -> ActionResult:
        success, rate, message, notification = self._transaction(
            "Approve insight", lambda: self.knowledge_base.approve(insight_id), RATES, INVOICE_INSIGHTS
        )
        if not success:
            return success, rate, message, notification
        return True, rate, f"Merged {rate.name} into the rate card.", None

    def discard_insight(self, insight_id: str) -> ActionResult:
        success, insight, message, notification = self._transaction(
            "Discard insight", lambda: self.knowledge_base.discard(insight_id), INVOICE_INSIGHTS
        )
        if not success:
            return success, insight, message, notification
        return True, insight, "Insight discarded.", None

    def add_manual_rate(self, name: str, current_rate: float, category: Category = Category.OTHER,
                        currency: Currency = Currency.INR, industry_rate: Optional[float] = None,
                        unit: str = "per unit") -> ActionResult:
        success, rate, message, notification = self._transaction(
            "Add rate",
            lambda: self.catalog.add_manual_rate(name, current_rate, category, currency, industry_rate, unit),
            RATES
        )
        if not success:
            return success, rate, message, notification
        return True, rate, f"Added {rate.name}.", None

    def update_rate(self, rate_id: str, **changes) -> ActionResult:
        success, rate, message, notification = self._transaction(
            "Update rate", lambda: self.catalog.update_rate(rate_id, **changes), RATES
        )
        if not success:
            return success, rate, message, notification
        return True, rate, f"Updated {rate.name}.", None

    def update_settings(self, **changes) -> ActionResult:
        success, settings, message, notification = self._transaction(
            "Update settings", lambda: self.knowledge_base.update_settings(**changes), SETTINGS
        )
        if not success:
            return success, settings, message, notification
        return True, settings, "Settings saved.", None
