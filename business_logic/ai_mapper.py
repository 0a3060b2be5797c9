"""
AI Mapper: maps free-form agency input onto the standardized rate card.

This module wraps the OpenAI chat completions API for the three remote
operations of the application: pricing estimates, work-log analysis and
invoice rate extraction. Every call returns a MapperResult; failures are
classified and logged here and never raised to the caller.
"""

import logging
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from openai import OpenAI

from models.data_models import (
    Attachment, Brand, EstimateResponse, InvoiceInsight, PendingLogReview,
    PricingSettings, Region, ServiceRate, new_id
)
from config.settings import config_manager
from .error_handler import error_handler, ErrorInfo, MalformedResponseError

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass
class MapperResult:
    """Outcome of one AI call: either a value or a classified error."""
    ok: bool
    value: Any = None
    error: Optional[ErrorInfo] = None

    @classmethod
    def success(cls, value: Any) -> 'MapperResult':
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ErrorInfo) -> 'MapperResult':
        return cls(ok=False, error=error)


def rates_context(rates: List[ServiceRate]) -> str:
    """JSON rate context embedded in prompts."""
    return json.dumps([rate.to_dict() for rate in rates], ensure_ascii=False)


class AIMapper:
    """
    Client for the external AI mapper.

    Prompts instruct the model to answer with a single JSON object; responses
    are decoded and default-filled at this boundary before entering the
    domain model.
    """

    def __init__(self, skip_openai_init: bool = False):
        """
        Initialize the AI Mapper.

        Args:
            skip_openai_init: Skip OpenAI client initialization (for testing)
        """
        self.client = None
        self.model_name = "gpt-4o"
        self.vision_model_name = "gpt-4o"
        self.timeout = 60.0
        self.temperature = 0.2
        self.max_tokens = 4000

        if not skip_openai_init:
            self._initialize_openai_client()

    def _initialize_openai_client(self):
        """Initialize OpenAI client with API key and model settings."""
        try:
            config = config_manager.load_config()
            self.client = OpenAI(api_key=config.openai_api_key)
            self.model_name = config.openai_model
            self.vision_model_name = config.openai_vision_model
            self.timeout = config.ai_timeout_seconds
            logger.info("OpenAI client initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize OpenAI client: {str(e)}")
            raise

    # Prompts

    def create_estimate_prompt(self, settings: PricingSettings, rates: List[ServiceRate],
                               region: Region, brand: Optional[Brand] = None) -> str:
        """
        System prompt for pricing a scope of work.

        Args:
            settings: Agency pricing settings (philosophy, multipliers, tiers)
            rates: Effective rate context (brand-learned rates first)
            region: Client region
            brand: Brand being estimated for, if known
        """
        if brand:
            brand_context = (
                f"Estimating for {brand.name}. Billing model: {brand.billing_model.value}. "
                f"Retainer scope: {brand.retainer_scope_limit or 'not specified'}."
            )
        else:
            brand_context = "Generic new client."

        tiers = "\n".join(
            f"- {tier.name.value} ({tier.price_range}): {', '.join(tier.deliverables)}"
            for tier in settings.tiers
        )

        return f"""You are an agency pricing consultant. Map the client's scope onto the agency's standardized services and price it.

REGION: {region.value} (pricing multiplier {settings.multiplier_for(region)})
BRAND CONTEXT: {brand_context}
PHILOSOPHY: {settings.philosophy}

RATES (use these exact service names when a service matches):
{rates_context(rates)}

PACKAGED TIERS:
{tiers}

OUTPUT FORMAT:
Return a JSON object with this exact structure:
{{
    "items": [
        {{
            "service": "Exact service name from RATES",
            "quantity": number,
            "unit": "billing unit",
            "suggestedRate": number,
            "total": number,
            "justification": "why this line item",
            "category": "Design | Video | Motion | Strategy | Other",
            "isOverage": false
        }}
    ],
    "totalEstimate": number,
    "currency": "INR | EUR | USD",
    "recommendedTier": "Maintenance | Growth | Partner",
    "strategicAdvice": "advice for pitching this estimate",
    "thoughtProcess": "how you approached the scope",
    "mappingLogic": [
        {{"inputPoint": "phrase from the scope", "mappedService": "service name", "reasoning": "why"}}
    ]
}}"""

    def create_work_log_prompt(self, brand: Brand, rates: List[ServiceRate], period_months: int) -> str:
        """
        System prompt for auditing a brand's work-history table.

        The sheet's own prices are treated as the truth for what was billed;
        the rate card is only the market comparison.
        """
        return f"""You are an agency audit expert. The user is pasting a spreadsheet or table of work done for brand: {brand.name}.

PERIOD:
- This data covers {period_months} MONTH(S). Adjust volume expectations accordingly
  (if the retainer includes 10 reels per month, 50 reels over 5 months is within retainer).
- Retainer scope: {brand.retainer_scope_limit or 'not specified'}.

DATA SUPREMACY RULE:
- Treat the numbers in the input as the truth for what was billed.
- If the input is a table (tab or space separated), map every row one-to-one.
- Extract task name, quantity and the actual price charged.

AGENCY STANDARDS (for comparison only):
{rates_context(rates)}

LOGIC:
1. "service": the standardized service name from the standards when one matches, else the task name.
2. "suggestedRate": the standard rate for the service, even if the sheet charged less.
3. "total": the price from the user's sheet (quantity x price charged).
4. "totalSheetRevenue": sum of all prices in the user's input.
5. "totalMarketValue": sum of quantity x suggestedRate.
6. "health": "Loss" if totalSheetRevenue < totalMarketValue, otherwise "Healthy"; use "Warning" when close.
7. "aiInsight": where the brand is losing money against the standards. Mention the {period_months}-month span.

OUTPUT FORMAT:
Return a JSON object with this exact structure:
{{
    "deliverables": [
        {{
            "service": "name",
            "quantity": number,
            "unit": "unit",
            "suggestedRate": number,
            "total": number,
            "category": "Design | Video | Motion | Strategy | Other",
            "isOverage": false
        }}
    ],
    "totalMarketValue": number,
    "totalSheetRevenue": number,
    "overageTotal": number,
    "health": "Healthy | Loss | Warning",
    "aiInsight": "narrative"
}}"""

    def create_invoice_prompt(self) -> str:
        return """Extract standard service rates from invoices. Generalize names (ignore dates and week numbers). Detect the currency.

OUTPUT FORMAT:
Return a JSON object with this exact structure:
{
    "insights": [
        {
            "detectedName": "generalized service name",
            "detectedCategory": "Design | Video | Motion | Strategy | Other",
            "detectedRate": number,
            "detectedCurrency": "INR | EUR | USD",
            "detectedUnit": "per unit",
            "confidence": number between 0 and 1,
            "sourceLabel": "the invoice line this came from"
        }
    ]
}"""

    # Transport

    def _build_user_content(self, text: str,
                            attachment: Optional[Attachment] = None) -> Union[str, List[Dict[str, Any]]]:
        """Plain text, or multi-part content when an attachment is present."""
        if attachment is None:
            return text

        data_url = f"data:{attachment.mime_type};base64,{attachment.data}"
        if attachment.mime_type == 'application/pdf':
            file_part = {
                "type": "file",
                "file": {"filename": attachment.name or "document.pdf", "file_data": data_url}
            }
        else:
            file_part = {"type": "image_url", "image_url": {"url": data_url}}

        return [{"type": "text", "text": text}, file_part]

    def _call_openai_api(self, system_prompt: str, user_content: Union[str, List[Dict[str, Any]]],
                         model: Optional[str] = None) -> Any:
        """
        Call OpenAI in JSON mode and decode the answer.

        Raises:
            MalformedResponseError: If the response is empty or not JSON
            openai.OpenAIError: For transport and API failures
        """
        if not self.client:
            raise RuntimeError("OpenAI client not initialized. Please check API key configuration.")

        model = model or self.model_name
        start_time = time.time()
        logger.info(f"Calling OpenAI API with model: {model}")

        response = self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content}
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
            timeout=self.timeout
        )

        if not response.choices:
            raise MalformedResponseError("OpenAI returned empty response")

        content = response.choices[0].message.content
        if not content:
            raise MalformedResponseError("OpenAI returned empty content")

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse OpenAI JSON response: {content[:500]}...")
            raise MalformedResponseError(f"Invalid JSON response from OpenAI: {str(e)}")

        logger.info(f"OpenAI API call completed in {time.time() - start_time:.2f}s")
        return parsed

    def _failure(self, error: Exception, context: str) -> MapperResult:
        error_info = error_handler.classify_error(error, context)
        error_handler.log_error(error_info, "AI Mapper")
        return MapperResult.failure(error_info)

    @staticmethod
    def _require_object(parsed: Any, context: str) -> Dict[str, Any]:
        if not isinstance(parsed, dict):
            raise MalformedResponseError(f"{context} response is not a JSON object")
        return parsed

    # Operations

    def estimate(self, scope_text: str, region: Region, rates: List[ServiceRate],
                 settings: PricingSettings, brand: Optional[Brand] = None,
                 image: Optional[Attachment] = None) -> MapperResult:
        """
        Price a scope of work.

        Args:
            scope_text: Free-form scope from the user
            region: Client region
            rates: Effective rate context
            settings: Agency pricing settings
            brand: Optional brand for context
            image: Optional brief screenshot or document

        Returns:
            MapperResult carrying an EstimateResponse
        """
        try:
            system_prompt = self.create_estimate_prompt(settings, rates, region, brand)
            model = self.vision_model_name if image else self.model_name
            parsed = self._call_openai_api(system_prompt, self._build_user_content(f"Scope: {scope_text}", image),
                                           model)
            estimate = EstimateResponse.from_dict(self._require_object(parsed, "Estimate"))
            estimate.raw_input = scope_text
            logger.info(f"Estimate produced {len(estimate.items)} line item(s)")
            return MapperResult.success(estimate)
        except Exception as e:
            return self._failure(e, "pricing estimate")

    def refine_estimate(self, scope_text: str, refinement: str, current: EstimateResponse,
                        region: Region, rates: List[ServiceRate], settings: PricingSettings,
                        brand: Optional[Brand] = None) -> MapperResult:
        """
        Re-price an estimate with additional instructions.

        The result is a proposal; the caller decides whether to adopt it.
        """
        try:
            system_prompt = self.create_estimate_prompt(settings, rates, region, brand)
            user_prompt = (
                f"Scope: {scope_text}\n\n"
                f"CURRENT ESTIMATE:\n{json.dumps(current.to_dict(), ensure_ascii=False)}\n\n"
                f"REFINEMENT REQUEST: {refinement}\n"
                "Return the full revised estimate in the same JSON format."
            )
            parsed = self._call_openai_api(system_prompt, user_prompt)
            estimate = EstimateResponse.from_dict(self._require_object(parsed, "Estimate"))
            estimate.raw_input = scope_text
            return MapperResult.success(estimate)
        except Exception as e:
            return self._failure(e, "estimate refinement")

    def analyze_work_log(self, brand: Brand, raw_table_text: str, rates: List[ServiceRate],
                         period_months: int) -> MapperResult:
        """
        Standardize a work-history table into deliverables for review.

        Returns:
            MapperResult carrying a PendingLogReview
        """
        try:
            system_prompt = self.create_work_log_prompt(brand, rates, period_months)
            parsed = self._call_openai_api(system_prompt, f"User Spreadsheet Data:\n{raw_table_text}")
            review = PendingLogReview.from_dict(self._require_object(parsed, "Work log"))
            logger.info(f"Work log analysis for {brand.name}: {len(review.deliverables)} deliverable(s), "
                        f"health {review.health.value}")
            return MapperResult.success(review)
        except Exception as e:
            return self._failure(e, "work log analysis")

    def analyze_invoice(self, text: str, file: Optional[Attachment] = None) -> MapperResult:
        """
        Extract candidate rates from an invoice.

        Returns:
            MapperResult carrying a list of InvoiceInsight, each with a fresh id
        """
        try:
            parsed = self._call_openai_api(self.create_invoice_prompt(),
                                           self._build_user_content(f"Invoice: {text}", file),
                                           self.vision_model_name if file else self.model_name)
            if isinstance(parsed, dict):
                raw_items = parsed.get('insights', [])
            else:
                raw_items = parsed
            if not isinstance(raw_items, list):
                raw_items = []

            insights = []
            for raw in raw_items:
                if not isinstance(raw, dict):
                    continue
                insight = InvoiceInsight.from_dict(raw)
                insight.id = new_id()
                insights.append(insight)

            logger.info(f"Invoice analysis detected {len(insights)} rate(s)")
            return MapperResult.success(insights)
        except Exception as e:
            return self._failure(e, "invoice analysis")
