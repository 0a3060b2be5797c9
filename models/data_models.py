"""
Core data models for the Agency Rate Desk application.

Entities serialize with the camelCase keys used by the browser
export so persisted files stay interchangeable with it. ``from_dict``
tolerates missing or malformed fields: numbers default to 0, lists to
empty, strings to "".
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Any


class Category(Enum):
    """Service category."""
    DESIGN = "Design"
    VIDEO = "Video"
    MOTION = "Motion"
    STRATEGY = "Strategy"
    OTHER = "Other"


class Currency(Enum):
    INR = "INR"
    EUR = "EUR"
    USD = "USD"


class Region(Enum):
    """Client region, drives the pricing multiplier."""
    INDIA = "India"
    INTERNATIONAL = "International"


class BillingModel(Enum):
    RETAINER = "Retainer"
    PROJECT = "Project-Based"
    HYBRID = "Hybrid"


class Health(Enum):
    """Deal health of a billing period."""
    HEALTHY = "Healthy"
    LOSS = "Loss"
    WARNING = "Warning"


class HistoryStatus(Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class PricingTier(Enum):
    MAINTENANCE = "Maintenance"
    GROWTH = "Growth"
    PARTNER = "Partner"


def new_id() -> str:
    """Generate a fresh entity id."""
    return str(uuid.uuid4())


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce a loosely typed value to float, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_int(value: Any, default: int = 0) -> int:
    """Coerce a loosely typed value to int, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def to_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def to_str(value: Any, default: str = "") -> str:
    return default if value is None else str(value)


def to_bool(value: Any) -> bool:
    """Only a real True or the text "true" count; "false", 0 and junk do not."""
    if isinstance(value, str):
        return value.strip().lower() == 'true'
    return value is True


def normalize_name(name: Optional[str]) -> str:
    """Key for matching service names: case and surrounding space ignored."""
    return (name or "").strip().lower()


def coerce_enum(enum_cls, value: Any, default: Optional[Enum]) -> Optional[Enum]:
    """Map a raw value (enum member, value or name) onto ``enum_cls``."""
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return default
    text = str(value).strip()
    for member in enum_cls:
        if text.lower() in (member.value.lower(), member.name.lower()):
            return member
    return default


@dataclass
class ServiceRate:
    """Standardized service offering on the rate card."""
    id: str
    name: str
    category: Category
    current_rate: float
    industry_rate: float
    currency: Currency
    unit: str
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'name': self.name,
            'category': self.category.value,
            'currentRate': self.current_rate,
            'currency': self.currency.value,
            'industryRate': self.industry_rate,
            'unit': self.unit,
        }
        if self.notes:
            data['notes'] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ServiceRate':
        return cls(
            id=to_str(data.get('id')) or new_id(),
            name=to_str(data.get('name')),
            category=coerce_enum(Category, data.get('category'), Category.OTHER),
            current_rate=to_float(data.get('currentRate')),
            industry_rate=to_float(data.get('industryRate')),
            currency=coerce_enum(Currency, data.get('currency'), Currency.INR),
            unit=to_str(data.get('unit')),
            notes=data.get('notes')
        )


@dataclass
class Brand:
    """A client account and its billing configuration."""
    id: str
    name: str
    billing_model: BillingModel
    currency: Currency
    region: Region
    monthly_retainer_fee: Optional[float] = None
    retainer_scope_limit: Optional[str] = None
    learned_rates: List[ServiceRate] = field(default_factory=list)

    def find_learned_rate(self, service_name: str) -> Optional[ServiceRate]:
        """Case-insensitive lookup in the brand's learned rates."""
        key = normalize_name(service_name)
        for rate in self.learned_rates:
            if normalize_name(rate.name) == key:
                return rate
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'name': self.name,
            'billingModel': self.billing_model.value,
            'currency': self.currency.value,
            'region': self.region.value,
            'learnedRates': [rate.to_dict() for rate in self.learned_rates],
        }
        if self.monthly_retainer_fee is not None:
            data['monthlyRetainerFee'] = self.monthly_retainer_fee
        if self.retainer_scope_limit is not None:
            data['retainerScopeLimit'] = self.retainer_scope_limit
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Brand':
        fee = data.get('monthlyRetainerFee')
        return cls(
            id=to_str(data.get('id')) or new_id(),
            name=to_str(data.get('name')),
            billing_model=coerce_enum(BillingModel, data.get('billingModel'), BillingModel.RETAINER),
            currency=coerce_enum(Currency, data.get('currency'), Currency.INR),
            region=coerce_enum(Region, data.get('region'), Region.INDIA),
            monthly_retainer_fee=None if fee is None else to_float(fee),
            retainer_scope_limit=data.get('retainerScopeLimit'),
            learned_rates=[ServiceRate.from_dict(r) for r in to_list(data.get('learnedRates'))
                           if isinstance(r, dict)]
        )


@dataclass
class EstimateItem:
    """A single standardized deliverable line."""
    service: str
    quantity: float
    unit: str
    suggested_rate: float
    total: float
    justification: str = ""
    category: Optional[Category] = None
    is_overage: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'service': self.service,
            'quantity': self.quantity,
            'unit': self.unit,
            'suggestedRate': self.suggested_rate,
            'total': self.total,
            'justification': self.justification,
            'isOverage': self.is_overage,
        }
        if self.category is not None:
            data['category'] = self.category.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EstimateItem':
        return cls(
            service=to_str(data.get('service')),
            quantity=to_float(data.get('quantity')),
            unit=to_str(data.get('unit')),
            suggested_rate=to_float(data.get('suggestedRate')),
            total=to_float(data.get('total')),
            justification=to_str(data.get('justification')),
            category=coerce_enum(Category, data.get('category'), None),
            is_overage=to_bool(data.get('isOverage'))
        )


@dataclass
class TaskMapping:
    """How one input point was mapped onto a catalog service."""
    input_point: str
    mapped_service: str
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'inputPoint': self.input_point,
            'mappedService': self.mapped_service,
            'reasoning': self.reasoning,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TaskMapping':
        return cls(
            input_point=to_str(data.get('inputPoint')),
            mapped_service=to_str(data.get('mappedService')),
            reasoning=to_str(data.get('reasoning'))
        )


@dataclass
class EstimateResponse:
    """Priced estimate returned by the AI mapper."""
    items: List[EstimateItem]
    total_estimate: float
    currency: str
    strategic_advice: str
    recommended_tier: Optional[PricingTier] = None
    thought_process: Optional[str] = None
    mapping_logic: List[TaskMapping] = field(default_factory=list)
    raw_input: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'items': [item.to_dict() for item in self.items],
            'totalEstimate': self.total_estimate,
            'currency': self.currency,
            'strategicAdvice': self.strategic_advice,
            'mappingLogic': [m.to_dict() for m in self.mapping_logic],
        }
        if self.recommended_tier is not None:
            data['recommendedTier'] = self.recommended_tier.value
        if self.thought_process is not None:
            data['thoughtProcess'] = self.thought_process
        if self.raw_input is not None:
            data['rawInput'] = self.raw_input
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EstimateResponse':
        return cls(
            items=[EstimateItem.from_dict(i) for i in to_list(data.get('items')) if isinstance(i, dict)],
            total_estimate=to_float(data.get('totalEstimate')),
            currency=to_str(data.get('currency')),
            strategic_advice=to_str(data.get('strategicAdvice')),
            recommended_tier=coerce_enum(PricingTier, data.get('recommendedTier'), None),
            thought_process=data.get('thoughtProcess'),
            mapping_logic=[TaskMapping.from_dict(m) for m in to_list(data.get('mappingLogic'))
                           if isinstance(m, dict)],
            raw_input=data.get('rawInput')
        )


@dataclass
class PendingLogReview:
    """Unconfirmed work-log analysis awaiting user review."""
    deliverables: List[EstimateItem]
    total_market_value: float
    overage_total: float
    health: Health
    ai_insight: str
    total_sheet_revenue: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PendingLogReview':
        sheet_revenue = data.get('totalSheetRevenue')
        return cls(
            deliverables=[EstimateItem.from_dict(d) for d in to_list(data.get('deliverables'))
                          if isinstance(d, dict)],
            total_market_value=to_float(data.get('totalMarketValue')),
            overage_total=to_float(data.get('overageTotal')),
            health=coerce_enum(Health, data.get('health'), Health.HEALTHY),
            ai_insight=to_str(data.get('aiInsight')),
            total_sheet_revenue=None if sheet_revenue is None else to_float(sheet_revenue)
        )


@dataclass
class WorkLog:
    """One confirmed billing record for a brand."""
    id: str
    brand_id: str
    month: str
    period_months: int
    deliverables: List[EstimateItem]
    total_market_value: float
    overage_total: float
    actual_billed: float
    health: Health
    ai_insight: str
    raw_input: str = ""
    sequence: int = 0
    created_at: datetime = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'brandId': self.brand_id,
            'month': self.month,
            'periodMonths': self.period_months,
            'rawInput': self.raw_input,
            'deliverables': [d.to_dict() for d in self.deliverables],
            'totalMarketValue': self.total_market_value,
            'actualBilled': self.actual_billed,
            'overageTotal': self.overage_total,
            'health': self.health.value,
            'aiInsight': self.ai_insight,
            'sequence': self.sequence,
            'createdAt': self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WorkLog':
        created_at = None
        if data.get('createdAt'):
            try:
                created_at = datetime.fromisoformat(str(data['createdAt']))
            except ValueError:
                created_at = None
        return cls(
            id=to_str(data.get('id')) or new_id(),
            brand_id=to_str(data.get('brandId')),
            month=to_str(data.get('month')),
            # Legacy logs predate multi-month billing
            period_months=max(1, to_int(data.get('periodMonths'), 1)),
            deliverables=[EstimateItem.from_dict(d) for d in to_list(data.get('deliverables'))
                          if isinstance(d, dict)],
            total_market_value=to_float(data.get('totalMarketValue')),
            overage_total=to_float(data.get('overageTotal')),
            actual_billed=to_float(data.get('actualBilled')),
            health=coerce_enum(Health, data.get('health'), Health.HEALTHY),
            ai_insight=to_str(data.get('aiInsight')),
            raw_input=to_str(data.get('rawInput')),
            sequence=to_int(data.get('sequence')),
            created_at=created_at
        )


@dataclass
class HistoryItem:
    """Saved pricing estimate snapshot."""
    id: str
    timestamp: int
    region: Region
    final_estimate: EstimateResponse
    status: HistoryStatus = HistoryStatus.DRAFT
    client_name: Optional[str] = None
    brand_id: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'timestamp': self.timestamp,
            'region': self.region.value,
            'finalEstimate': self.final_estimate.to_dict(),
            'status': self.status.value,
        }
        for key, value in (('clientName', self.client_name), ('brandId', self.brand_id),
                           ('notes', self.notes)):
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoryItem':
        estimate = data.get('finalEstimate')
        return cls(
            id=to_str(data.get('id')) or new_id(),
            timestamp=to_int(data.get('timestamp')),
            region=coerce_enum(Region, data.get('region'), Region.INDIA),
            final_estimate=EstimateResponse.from_dict(estimate if isinstance(estimate, dict) else {}),
            status=coerce_enum(HistoryStatus, data.get('status'), HistoryStatus.DRAFT),
            client_name=data.get('clientName'),
            brand_id=data.get('brandId'),
            notes=data.get('notes')
        )


@dataclass
class InvoiceInsight:
    """Rate discovered in an invoice, pending approval."""
    id: str
    detected_name: str
    detected_category: Category
    detected_rate: float
    detected_currency: Currency
    detected_unit: str
    confidence: float
    source_label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'detectedName': self.detected_name,
            'detectedCategory': self.detected_category.value,
            'detectedRate': self.detected_rate,
            'detectedCurrency': self.detected_currency.value,
            'detectedUnit': self.detected_unit,
            'confidence': self.confidence,
            'sourceLabel': self.source_label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InvoiceInsight':
        return cls(
            id=to_str(data.get('id')) or new_id(),
            detected_name=to_str(data.get('detectedName')),
            detected_category=coerce_enum(Category, data.get('detectedCategory'), Category.OTHER),
            detected_rate=to_float(data.get('detectedRate')),
            detected_currency=coerce_enum(Currency, data.get('detectedCurrency'), Currency.INR),
            detected_unit=to_str(data.get('detectedUnit')),
            confidence=to_float(data.get('confidence')),
            source_label=to_str(data.get('sourceLabel'))
        )


@dataclass
class TierDefinition:
    """Packaged retainer tier shown to prospects."""
    name: PricingTier
    price_range: str
    deliverables: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name.value, 'priceRange': self.price_range,
                'deliverables': list(self.deliverables)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TierDefinition':
        return cls(
            name=coerce_enum(PricingTier, data.get('name'), PricingTier.GROWTH),
            price_range=to_str(data.get('priceRange')),
            deliverables=[str(d) for d in to_list(data.get('deliverables'))]
        )


@dataclass
class PricingSettings:
    """Agency-wide pricing knobs and philosophy."""
    agency_multiplier: float
    international_multiplier: float
    junior_hourly_cost: float
    senior_hourly_cost: float
    philosophy: str
    tiers: List[TierDefinition] = field(default_factory=list)

    def multiplier_for(self, region: Region) -> float:
        if region == Region.INTERNATIONAL:
            return self.international_multiplier
        return self.agency_multiplier

    def to_dict(self) -> Dict[str, Any]:
        return {
            'agencyMultiplier': self.agency_multiplier,
            'internationalMultiplier': self.international_multiplier,
            'juniorHourlyCost': self.junior_hourly_cost,
            'seniorHourlyCost': self.senior_hourly_cost,
            'philosophy': self.philosophy,
            'tiers': [tier.to_dict() for tier in self.tiers],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PricingSettings':
        return cls(
            agency_multiplier=to_float(data.get('agencyMultiplier')),
            international_multiplier=to_float(data.get('internationalMultiplier')),
            junior_hourly_cost=to_float(data.get('juniorHourlyCost')),
            senior_hourly_cost=to_float(data.get('seniorHourlyCost')),
            philosophy=to_str(data.get('philosophy')),
            tiers=[TierDefinition.from_dict(t) for t in to_list(data.get('tiers')) if isinstance(t, dict)]
        )


@dataclass
class Attachment:
    """Base64 payload of an uploaded image or document."""
    data: str
    mime_type: str
    name: str = ""
