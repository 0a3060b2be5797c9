"""
Rate catalog: the agency's standardized services and their prices.
"""

import logging
from typing import List, Optional

from models.data_models import Brand, Category, Currency, ServiceRate, new_id, normalize_name

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Market reference assumed when only the agency price is known
INDUSTRY_RATE_FACTOR = 1.5


class RateCatalog:
    """
    Global rate card with brand-aware lookup.

    Matching is exact case-insensitive equality on the service name. The AI
    mapper is instructed to emit catalog names, so no fuzzy matching happens
    here.
    """

    def __init__(self, rates: Optional[List[ServiceRate]] = None):
        self.rates: List[ServiceRate] = list(rates or [])

    def find(self, service_name: str) -> Optional[ServiceRate]:
        """Look up a global catalog entry by name."""
        key = normalize_name(service_name)
        for rate in self.rates:
            if normalize_name(rate.name) == key:
                return rate
        return None

    def effective_rates(self, brand: Optional[Brand] = None) -> List[ServiceRate]:
        """
        Rates in force for a brand.

        Learned rates come first; global entries whose name collides with a
        learned one are dropped.
        """
        if brand is None:
            return list(self.rates)

        learned_names = {normalize_name(rate.name) for rate in brand.learned_rates}
        return list(brand.learned_rates) + [
            rate for rate in self.rates if normalize_name(rate.name) not in learned_names
        ]

    def resolve_rate(self, service_name: str, brand: Optional[Brand] = None) -> Optional[ServiceRate]:
        """
        Resolve a service name to a rate.

        Args:
            service_name: Name emitted by the AI mapper or typed by a user
            brand: Optional brand whose learned rates take precedence

        Returns:
            The matching ServiceRate, or None
        """
        key = normalize_name(service_name)
        for rate in self.effective_rates(brand):
            if normalize_name(rate.name) == key:
                return rate
        return None

    def add_manual_rate(self, name: str, current_rate: float, category: Category = Category.OTHER,
                        currency: Currency = Currency.INR, industry_rate: Optional[float] = None,
                        unit: str = "per unit") -> ServiceRate:
        """
        Add a rate typed in by the user.

        Raises:
            ValueError: If the name is blank or the rate is missing
        """
        if not name or not name.strip() or not current_rate:
            raise ValueError("Please provide at least a service name and a rate.")

        rate = ServiceRate(
            id=new_id(),
            name=name.strip(),
            category=category or Category.OTHER,
            current_rate=float(current_rate),
            industry_rate=float(industry_rate) if industry_rate else float(current_rate) * INDUSTRY_RATE_FACTOR,
            currency=currency or Currency.INR,
            unit=unit or "per unit"
        )
        self.rates.append(rate)
        logger.info(f"Added rate {rate.name}: {rate.current_rate} {rate.currency.value} {rate.unit}")
        return rate

    def update_rate(self, rate_id: str, **changes) -> ServiceRate:
        """
        Edit a catalog entry in place.

        Raises:
            KeyError: If no rate has ``rate_id``
            AttributeError: If a change names an unknown field
        """
        for rate in self.rates:
            if rate.id == rate_id:
                for field_name, value in changes.items():
                    if not hasattr(rate, field_name) or field_name == 'id':
                        raise AttributeError(f"ServiceRate has no editable field '{field_name}'")
                    setattr(rate, field_name, value)
                return rate
        raise KeyError(f"Rate {rate_id} not found")
