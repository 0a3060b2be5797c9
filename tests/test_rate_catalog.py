"""
Tests for the rate catalog, brand registry and knowledge base.
"""

import pytest

from business_logic.brand_registry import BrandRegistry
from business_logic.knowledge_base import KnowledgeBase
from business_logic.rate_catalog import RateCatalog
from data.defaults import default_service_rates, default_settings
from models.data_models import (
    BillingModel, Brand, Category, Currency, InvoiceInsight, Region, ServiceRate
)


class TestRateCatalog:
    """Test cases for RateCatalog."""

    def setup_method(self):
        self.catalog = RateCatalog(default_service_rates())
        self.brand = Brand('b1', 'CashBook', BillingModel.RETAINER, Currency.INR, Region.INDIA,
                           monthly_retainer_fee=100000)

    def test_resolve_is_case_insensitive(self):
        rate = self.catalog.resolve_rate('reel EDITING')
        assert rate is not None
        assert rate.current_rate == 1000

    def test_resolve_and_find_ignore_surrounding_space(self):
        assert self.catalog.resolve_rate(' Reel Editing ').id == '1'
        assert self.catalog.find('static graphic\t').id == '4'

        self.brand.learned_rates.append(
            ServiceRate('l1', 'Reel Editing ', Category.VIDEO, 1500, 2250, Currency.INR, 'per reel')
        )
        assert self.catalog.resolve_rate('reel editing', self.brand).id == 'l1'
        assert all(rate.id != '1' for rate in self.catalog.effective_rates(self.brand))

    def test_resolve_unknown_returns_none(self):
        assert self.catalog.resolve_rate('Reel Edit') is None

    def test_learned_rate_takes_precedence(self):
        self.brand.learned_rates.append(
            ServiceRate('l1', 'REEL EDITING', Category.VIDEO, 1500, 2250, Currency.INR, 'per reel')
        )
        rate = self.catalog.resolve_rate('Reel Editing', self.brand)
        assert rate.id == 'l1'
        assert rate.current_rate == 1500

    def test_falls_back_to_global_without_learned_entry(self):
        rate = self.catalog.resolve_rate('Static Graphic', self.brand)
        assert rate.id == '4'

    def test_effective_rates_drop_colliding_globals(self):
        self.brand.learned_rates.append(
            ServiceRate('l1', 'static graphic', Category.DESIGN, 800, 1200, Currency.INR, 'per design')
        )
        rates = self.catalog.effective_rates(self.brand)

        assert rates[0].id == 'l1'
        assert len(rates) == len(self.catalog.rates)
        assert all(rate.id != '4' for rate in rates)

    def test_add_manual_rate_defaults_industry_rate(self):
        rate = self.catalog.add_manual_rate('Carousel Post', 800, Category.DESIGN)
        assert rate.industry_rate == pytest.approx(1200)
        assert rate.unit == 'per unit'
        assert self.catalog.find('carousel post') is rate

    def test_add_manual_rate_requires_name_and_rate(self):
        with pytest.raises(ValueError):
            self.catalog.add_manual_rate('  ', 800)
        with pytest.raises(ValueError):
            self.catalog.add_manual_rate('Carousel Post', 0)

    def test_update_rate(self):
        rate = self.catalog.update_rate('1', current_rate=1250)
        assert rate.current_rate == 1250

        with pytest.raises(KeyError):
            self.catalog.update_rate('missing', current_rate=1)
        with pytest.raises(AttributeError):
            self.catalog.update_rate('1', colour='blue')


class TestBrandRegistry:
    """Test cases for BrandRegistry."""

    def setup_method(self):
        self.registry = BrandRegistry()

    def test_create_brand_requires_name(self):
        with pytest.raises(ValueError):
            self.registry.create_brand('   ')

    def test_retainer_fee_defaults_to_zero(self):
        brand = self.registry.create_brand('Traveleva', BillingModel.HYBRID)
        assert brand.monthly_retainer_fee == 0
        assert brand.learned_rates == []

    def test_project_brand_keeps_fee_unset(self):
        brand = self.registry.create_brand('Cook and Pan', BillingModel.PROJECT, currency=Currency.EUR)
        assert brand.monthly_retainer_fee is None

    def test_negative_fee_accepted(self):
        brand = self.registry.create_brand('Odd Client', monthly_retainer_fee=-500)
        assert brand.monthly_retainer_fee == -500

    def test_update_and_get(self):
        brand = self.registry.create_brand('Shumee', monthly_retainer_fee=40000)
        self.registry.update_brand(brand.id, monthly_retainer_fee=45000)

        assert self.registry.get_brand(brand.id).monthly_retainer_fee == 45000
        assert self.registry.list_brands() == [brand]

        with pytest.raises(KeyError):
            self.registry.update_brand('missing', monthly_retainer_fee=1)
        with pytest.raises(AttributeError):
            self.registry.update_brand(brand.id, colour='blue')
        assert self.registry.get_brand(brand.id).monthly_retainer_fee == 45000


class TestKnowledgeBase:
    """Test cases for invoice insight approval."""

    def setup_method(self):
        self.catalog = RateCatalog(default_service_rates())
        self.kb = KnowledgeBase(self.catalog, default_settings())

    def make_insight(self, insight_id: str, name: str, rate: float,
                     currency: Currency = Currency.EUR) -> InvoiceInsight:
        return InvoiceInsight(insight_id, name, Category.DESIGN, rate, currency, 'per design', 0.9, 'Line 1')

    def test_approve_updates_existing_rate(self):
        self.kb.ingest([self.make_insight('i1', 'static graphic', 40)])
        rate = self.kb.approve('i1')

        assert rate.id == '4'
        assert rate.current_rate == 40
        assert rate.currency == Currency.EUR
        assert self.kb.insights == []

    def test_approve_adds_new_rate(self):
        count = len(self.catalog.rates)
        self.kb.ingest([self.make_insight('i2', 'Label Design', 150)])
        rate = self.kb.approve('i2')

        assert len(self.catalog.rates) == count + 1
        assert rate.industry_rate == pytest.approx(225)

    def test_discard(self):
        self.kb.ingest([self.make_insight('i3', 'Label Design', 150)])
        self.kb.discard('i3')
        assert self.kb.insights == []
        with pytest.raises(KeyError):
            self.kb.approve('i3')

    def test_update_settings(self):
        settings = self.kb.update_settings(agency_multiplier=3.0)
        assert settings.agency_multiplier == 3.0
        with pytest.raises(AttributeError):
            self.kb.update_settings(unknown=1)
