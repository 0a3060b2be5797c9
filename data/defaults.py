"""
Seed data used when no persisted collection exists yet.
"""

from typing import List

from models.data_models import (
    Brand, BillingModel, Category, Currency, PricingSettings, PricingTier,
    Region, ServiceRate, TierDefinition
)


def default_service_rates() -> List[ServiceRate]:
    """Agency rate card shipped with the application."""
    return [
        ServiceRate('1', 'Reel Editing', Category.VIDEO, 1000, 4000, Currency.INR, 'per reel'),
        ServiceRate('2', 'Motion Graphics', Category.MOTION, 200, 750, Currency.INR, 'per sec'),
        ServiceRate('3', 'Video Shoot (Day)', Category.VIDEO, 10000, 35000, Currency.INR, 'per day'),
        ServiceRate('4', 'Static Graphic', Category.DESIGN, 500, 3500, Currency.INR, 'per design'),
        ServiceRate('5', 'Packaging Design (Domestic)', Category.DESIGN, 27000, 65000, Currency.INR,
                    'per project'),
        ServiceRate('6', 'Strategy/Consulting', Category.STRATEGY, 5000, 15000, Currency.INR, 'per hour'),
        ServiceRate('7', 'Ad Creative (Video)', Category.VIDEO, 2000, 6000, Currency.INR, 'per ad'),
        ServiceRate('8', 'Packaging Design (EU)', Category.DESIGN, 300, 800, Currency.EUR, 'per design'),
        ServiceRate('9', 'Ad Design (EU)', Category.DESIGN, 20, 60, Currency.EUR, 'per ad'),
    ]


def default_settings() -> PricingSettings:
    return PricingSettings(
        agency_multiplier=2.5,
        international_multiplier=3.5,
        junior_hourly_cost=400,
        senior_hourly_cost=1000,
        philosophy=(
            "Strategy-First Creative: We don't just move pixels; we move metrics. "
            "Our work separates into Execution (Production) and Thinking (Strategy). "
            "For European clients, we maintain premium standards matching "
            "€60-€100/hr market expectations."
        ),
        tiers=[
            TierDefinition(PricingTier.MAINTENANCE, "₹25k - ₹35k",
                           ["8-10 Static Graphics", "Basic Copywriting", "No Strategy/Shoots"]),
            TierDefinition(PricingTier.GROWTH, "₹60k - ₹80k",
                           ["Social Strategy", "12 High-Quality Reels", "4 Statics", "Monthly Reports"]),
            TierDefinition(PricingTier.PARTNER, "₹1.2L - ₹2L",
                           ["CMO Level Strategy", "Full Content Suite", "Motion Ads", "Weekly Optimization"]),
        ]
    )


def default_brands() -> List[Brand]:
    """Starter brand registry."""
    return [
        Brand('b1', 'CashBook', BillingModel.RETAINER, Currency.INR, Region.INDIA,
              monthly_retainer_fee=100000,
              retainer_scope_limit='Strategy, Visuals, Motion, Video Editing'),
        Brand('b2', 'Shumee', BillingModel.RETAINER, Currency.INR, Region.INDIA,
              monthly_retainer_fee=40000,
              retainer_scope_limit='12 Reels, Social Strategy, Calendar'),
        Brand('b3', 'Traveleva', BillingModel.HYBRID, Currency.INR, Region.INDIA,
              monthly_retainer_fee=15000,
              retainer_scope_limit='10-15 Reels, a few Ads'),
        Brand('b4', 'Cook and Pan', BillingModel.PROJECT, Currency.EUR, Region.INTERNATIONAL),
        Brand('b5', 'Shinrai Knives', BillingModel.HYBRID, Currency.INR, Region.INTERNATIONAL,
              monthly_retainer_fee=55000,
              retainer_scope_limit='Full Social Media Management'),
    ]
