"""
Brand registry: client accounts and their billing configuration.
"""

import logging
from typing import List, Optional

from models.data_models import BillingModel, Brand, Currency, Region, new_id

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class BrandRegistry:
    """Create, update and list brands. Brands are never deleted."""

    def __init__(self, brands: Optional[List[Brand]] = None):
        self.brands: List[Brand] = list(brands or [])

    def create_brand(self, name: str, billing_model: BillingModel = BillingModel.RETAINER,
                     monthly_retainer_fee: Optional[float] = None, retainer_scope_limit: str = "",
                     currency: Currency = Currency.INR, region: Region = Region.INDIA) -> Brand:
        """
        Register a new brand.

        Args:
            name: Brand name, required
            billing_model: Retainer, Project-Based or Hybrid
            monthly_retainer_fee: Fee for Retainer/Hybrid brands; defaults to 0
            retainer_scope_limit: Free-text description of what the retainer covers
            currency: Billing currency
            region: India or International

        Raises:
            ValueError: If the name is blank
        """
        if not name or not name.strip():
            raise ValueError("Brand name is required.")

        # Fee is not validated further; 0 and negative values are accepted
        if billing_model != BillingModel.PROJECT and monthly_retainer_fee is None:
            monthly_retainer_fee = 0.0

        brand = Brand(
            id=new_id(),
            name=name.strip(),
            billing_model=billing_model,
            currency=currency,
            region=region,
            monthly_retainer_fee=monthly_retainer_fee,
            retainer_scope_limit=retainer_scope_limit,
            learned_rates=[]
        )
        self.brands.append(brand)
        logger.info(f"Created brand {brand.name} ({brand.billing_model.value})")
        return brand

    def update_brand(self, brand_id: str, **changes) -> Brand:
        """
        Edit fields of a registered brand. Existing work logs are not touched.

        Raises:
            KeyError: If the brand is not registered
            AttributeError: If a change names an unknown field
        """
        brand = self.get_brand(brand_id)
        if brand is None:
            raise KeyError(f"Brand {brand_id} not found")
        for name in changes:
            if not hasattr(brand, name):
                raise AttributeError(f"Brand has no field '{name}'")
        for name, value in changes.items():
            setattr(brand, name, value)
        logger.info(f"Updated brand {brand.name}: {', '.join(changes)}")
        return brand

    def get_brand(self, brand_id: str) -> Optional[Brand]:
        for brand in self.brands:
            if brand.id == brand_id:
                return brand
        return None

    def list_brands(self) -> List[Brand]:
        return list(self.brands)
