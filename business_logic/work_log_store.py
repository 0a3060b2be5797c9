"""
Work log store: confirmed billing periods per brand.

Also owns the confirmation rules that turn a pending AI review into a
WorkLog, and the brand rate learning that follows each confirmation.
"""

import logging
from typing import List, Optional, Tuple

from models.data_models import (
    Brand, Category, EstimateItem, PendingLogReview, ServiceRate, WorkLog, new_id
)
from .rate_catalog import INDUSTRY_RATE_FACTOR

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December"
]


def compute_period_months(start_year: int, start_month: int, end_year: int, end_month: int) -> int:
    """
    Number of calendar months in an inclusive range, never less than 1.

    Months are 0-based (January is 0), matching the period pickers.
    """
    start = start_year * 12 + start_month
    end = end_year * 12 + end_month
    return max(1, end - start + 1)


def period_label(start_year: int, start_month: int, end_year: int, end_month: int) -> str:
    """Display label for a billing period."""
    if compute_period_months(start_year, start_month, end_year, end_month) > 1:
        return f"{MONTHS[start_month]} {start_year} — {MONTHS[end_month]} {end_year}"
    return f"{MONTHS[start_month]} {start_year}"


def recompute_overage_total(deliverables: List[EstimateItem]) -> float:
    return sum(item.total or 0 for item in deliverables if item.is_overage)


def toggle_overage(review: PendingLogReview, index: int) -> PendingLogReview:
    """
    Flip a deliverable's overage flag and recompute the review's overage total.

    Raises:
        IndexError: If ``index`` does not address a deliverable
    """
    item = review.deliverables[index]
    item.is_overage = not item.is_overage
    review.overage_total = recompute_overage_total(review.deliverables)
    return review


def derive_actual_billed(review: PendingLogReview, brand: Brand, period_months: int) -> float:
    """
    Revenue collected for the period.

    Revenue stated in the source sheet wins; otherwise the retainer formula
    (fee per month times months, plus overages) is used.
    """
    if review.total_sheet_revenue is not None and review.total_sheet_revenue > 0:
        return review.total_sheet_revenue
    return (brand.monthly_retainer_fee or 0) * period_months + (review.overage_total or 0)


class WorkLogStore:
    """
    Append-only collection of WorkLogs.

    Each log gets a monotonically increasing sequence number on creation;
    "latest" always means highest sequence.
    """

    def __init__(self, logs: Optional[List[WorkLog]] = None):
        self.logs: List[WorkLog] = sorted(logs or [], key=lambda log: log.sequence)

    def _next_sequence(self) -> int:
        return max((log.sequence for log in self.logs), default=0) + 1

    def logs_for_brand(self, brand_id: str) -> List[WorkLog]:
        """Logs of one brand, oldest first."""
        return sorted((log for log in self.logs if log.brand_id == brand_id),
                      key=lambda log: log.sequence)

    def append(self, log: WorkLog) -> WorkLog:
        log.sequence = self._next_sequence()
        self.logs.append(log)
        return log

    def delete_log(self, log_id: str) -> bool:
        """
        Remove a log by id.

        Returns:
            True if a log was removed
        """
        remaining = [log for log in self.logs if log.id != log_id]
        removed = len(remaining) != len(self.logs)
        self.logs = remaining
        if removed:
            logger.info(f"Deleted work log {log_id}")
        return removed

    def confirm_log(self, brand: Brand, review: PendingLogReview, period_months: int,
                    month_label: str, raw_input: str = "") -> Tuple[WorkLog, Brand]:
        """
        Turn a reviewed analysis into a saved WorkLog and learn new brand rates.

        Args:
            brand: Brand the period belongs to
            review: Reviewed AI analysis, overage flags as the user left them
            period_months: Months covered by the period
            month_label: Display label of the period
            raw_input: What the user submitted, kept for reference

        Returns:
            Tuple of (saved log, brand with learned rates folded in)
        """
        period_months = max(1, int(period_months or 1))

        log = WorkLog(
            id=new_id(),
            brand_id=brand.id,
            month=month_label,
            period_months=period_months,
            deliverables=list(review.deliverables),
            total_market_value=review.total_market_value or 0,
            overage_total=review.overage_total or 0,
            actual_billed=derive_actual_billed(review, brand, period_months),
            health=review.health,
            ai_insight=review.ai_insight or "",
            raw_input=raw_input
        )
        self.append(log)

        learned = self.learn_rates(brand, log.deliverables)
        logger.info(
            f"Confirmed {month_label} for {brand.name}: billed {log.actual_billed:,.2f}, "
            f"{learned} new learned rate(s)"
        )
        return log, brand

    @staticmethod
    def learn_rates(brand: Brand, deliverables: List[EstimateItem]) -> int:
        """
        Add a learned rate for every deliverable the brand has not seen.

        Existing learned rates are never updated.

        Returns:
            Number of rates added
        """
        added = 0
        for item in deliverables:
            if not item.service.strip() or brand.find_learned_rate(item.service) is not None:
                continue

            suggested = item.suggested_rate or 0
            brand.learned_rates.append(ServiceRate(
                id=new_id(),
                name=item.service.strip(),
                category=item.category or Category.OTHER,
                current_rate=suggested,
                industry_rate=suggested * INDUSTRY_RATE_FACTOR,
                currency=brand.currency,
                unit=item.unit
            ))
            added += 1
        return added
