"""
Tests for brand billing aggregation and deal health.
"""

import pytest

from business_logic.aggregation import AggregationEngine
from models.data_models import BillingModel, Brand, Currency, Health, Region, WorkLog


def make_log(brand_id: str, sequence: int, actual_billed: float, period_months: int = 1,
             health: Health = Health.HEALTHY) -> WorkLog:
    return WorkLog(
        id=f"log-{brand_id}-{sequence}",
        brand_id=brand_id,
        month=f"Period {sequence}",
        period_months=period_months,
        deliverables=[],
        total_market_value=0,
        overage_total=0,
        actual_billed=actual_billed,
        health=health,
        ai_insight="",
        sequence=sequence
    )


class TestEffectiveMonthlyRevenue:
    """Test cases for effective_monthly_revenue."""

    def setup_method(self):
        self.engine = AggregationEngine()
        self.brand = Brand('b1', 'Shumee', BillingModel.RETAINER, Currency.INR, Region.INDIA,
                           monthly_retainer_fee=40000)

    def test_no_logs_falls_back_to_retainer_fee(self):
        assert self.engine.effective_monthly_revenue(self.brand, []) == 40000

    def test_no_logs_and_no_fee_is_zero(self):
        brand = Brand('b4', 'Cook and Pan', BillingModel.PROJECT, Currency.EUR, Region.INTERNATIONAL)
        assert self.engine.effective_monthly_revenue(brand, []) == 0

    def test_logs_of_other_brands_are_ignored(self):
        logs = [make_log('other', 1, 999999)]
        assert self.engine.effective_monthly_revenue(self.brand, logs) == 40000

    def test_multi_month_logs_are_normalized(self):
        logs = [make_log('b1', 1, 90000, period_months=3), make_log('b1', 2, 30000, period_months=1)]
        assert self.engine.effective_monthly_revenue(self.brand, logs) == pytest.approx(30000)

    def test_missing_period_counts_as_one_month(self):
        logs = [make_log('b1', 1, 50000, period_months=0), make_log('b1', 2, 30000, period_months=1)]
        assert self.engine.effective_monthly_revenue(self.brand, logs) == pytest.approx(40000)

    def test_only_latest_six_logs_count(self):
        logs = [make_log('b1', seq, 10000 * seq) for seq in range(1, 7)]
        six_average = sum(10000 * seq for seq in range(1, 7)) / 6
        assert self.engine.effective_monthly_revenue(self.brand, logs) == pytest.approx(six_average)

        logs.append(make_log('b1', 7, 70000))
        seven_window = sum(10000 * seq for seq in range(2, 8)) / 6
        assert self.engine.effective_monthly_revenue(self.brand, logs) == pytest.approx(seven_window)

    def test_window_uses_sequence_not_list_position(self):
        logs = [make_log('b1', seq, 10000 * seq) for seq in range(7, 0, -1)]
        expected = sum(10000 * seq for seq in range(2, 8)) / 6
        assert self.engine.effective_monthly_revenue(self.brand, logs) == pytest.approx(expected)


class TestDealHealth:
    """Test cases for deal_health and brand_summary."""

    def setup_method(self):
        self.engine = AggregationEngine()
        self.brand = Brand('b3', 'Traveleva', BillingModel.HYBRID, Currency.INR, Region.INDIA,
                           monthly_retainer_fee=15000)

    def test_no_logs_means_no_data(self):
        assert self.engine.deal_health(self.brand, []) is None

    def test_latest_inserted_log_wins(self):
        logs = [
            make_log('b3', 1, 15000, health=Health.HEALTHY),
            make_log('b3', 2, 9000, health=Health.LOSS),
        ]
        assert self.engine.deal_health(self.brand, logs) == Health.LOSS

    def test_health_is_passed_through(self):
        # Billed far above the fee but classified Warning upstream
        logs = [make_log('b3', 1, 500000, health=Health.WARNING)]
        assert self.engine.deal_health(self.brand, logs) == Health.WARNING

    def test_brand_summary(self):
        logs = [make_log('b3', 1, 20000), make_log('b3', 2, 10000, health=Health.LOSS)]
        summary = self.engine.brand_summary(self.brand, logs)

        assert summary['log_count'] == 2
        assert summary['effective_monthly_revenue'] == pytest.approx(15000)
        assert summary['revenue_delta'] == pytest.approx(0)
        assert summary['health'] == 'Loss'
        assert summary['total_billed'] == 30000
