"""
risk_discounts.py — Discrete Risk Discounts (V2)

Purpose:
- Compute the named risk discounts a buyer prices into a deal: DLOM, key-person
  risk, customer concentration, documentation quality and legal/tax exposure.
- Combine them multiplicatively into the risk multiplier applied to the
  quality-adjusted multiple.

Each discount is tagged as STRUCTURAL (needs long-term structural change or a
transaction to remove: DLOM, customer concentration) or ADDRESSABLE (closable
through readiness work: key-person, documentation, legal/tax). The value-gap
decomposer relies on this tag.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Union

from exitready.core.logging import get_logger
from exitready.core.numeric import ONE, ZERO, Number, clamp, round_to, to_decimal
from exitready.services.scoring.core_score import FACTOR_SCORES
from exitready.services.valuation.ebitda import RevenueSizeCategory, parse_size_category

logger = get_logger(__name__)

STRUCTURAL = "structural"
ADDRESSABLE = "addressable"

DLOM_NAME = "Lack of Marketability (DLOM)"
KEY_PERSON_NAME = "Key-Person Risk"
CONCENTRATION_SINGLE_NAME = "Customer Concentration (Single)"
CONCENTRATION_TOP3_NAME = "Customer Concentration (Top 3)"
DOCUMENTATION_NAME = "Documentation Quality"
LEGAL_TAX_NAME = "Legal/Tax Risk"

DLOM_BY_SIZE = {
    RevenueSizeCategory.UNDER_500K: Decimal("0.25"),
    RevenueSizeCategory.FROM_500K_TO_1M: Decimal("0.22"),
    RevenueSizeCategory.FROM_1M_TO_3M: Decimal("0.18"),
    RevenueSizeCategory.FROM_3M_TO_10M: Decimal("0.15"),
    RevenueSizeCategory.FROM_10M_TO_25M: Decimal("0.12"),
    RevenueSizeCategory.OVER_25M: Decimal("0.10"),
}
DEFAULT_DLOM = Decimal("0.18")

KEY_PERSON_RATES = {
    "CRITICAL": Decimal("0.25"),
    "HIGH": Decimal("0.15"),
    "MODERATE": Decimal("0.08"),
    "LOW": Decimal("0.03"),
    "MINIMAL": Decimal("0"),
}
MAX_KEY_PERSON_RATE = Decimal("0.30")
MIN_MEANINGFUL_RATE = Decimal("0.02")

CONCENTRATION_SINGLE_HIGH = (Decimal("0.30"), Decimal("0.15"))
CONCENTRATION_SINGLE_MODERATE = (Decimal("0.20"), Decimal("0.08"))
CONCENTRATION_TOP3_HIGH = (Decimal("0.60"), Decimal("0.10"))
CONCENTRATION_TOP3_MODERATE = (Decimal("0.40"), Decimal("0.05"))

DOCS_DISCOUNT_THRESHOLD = Decimal("0.50")
DOCS_DISCOUNT_RATE = Decimal("0.05")
LEGAL_DISCOUNT_THRESHOLD = Decimal("0.40")
LEGAL_DISCOUNT_RATE = Decimal("0.08")


@dataclass(frozen=True)
class RiskDiscount:
    name: str
    rate: Decimal          # 0-1, e.g. 0.15 = 15% discount
    explanation: str
    reducibility: str      # STRUCTURAL or ADDRESSABLE

    @property
    def is_structural(self) -> bool:
        return self.reducibility == STRUCTURAL


@dataclass(frozen=True)
class RiskProfile:
    """Inputs to the risk discount calculation; None = unknown."""
    owner_involvement: Optional[str] = None
    transferability_score: Optional[Decimal] = None
    top_customer_concentration: Optional[Decimal] = None
    top3_customer_concentration: Optional[Decimal] = None
    legal_tax_score: Optional[Decimal] = None
    financial_score: Optional[Decimal] = None
    revenue_size_category: Optional[RevenueSizeCategory] = None

    @classmethod
    def create(
        cls,
        owner_involvement: Optional[str] = None,
        transferability_score: Optional[Number] = None,
        top_customer_concentration: Optional[Number] = None,
        top3_customer_concentration: Optional[Number] = None,
        legal_tax_score: Optional[Number] = None,
        financial_score: Optional[Number] = None,
        revenue_size_category: Optional[Union[RevenueSizeCategory, str]] = None,
    ) -> "RiskProfile":
        if owner_involvement is not None and owner_involvement not in FACTOR_SCORES["owner_involvement"]:
            raise ValueError(f"Unknown owner involvement level: {owner_involvement!r}")
        return cls(
            owner_involvement=owner_involvement,
            transferability_score=to_decimal(transferability_score),
            top_customer_concentration=to_decimal(top_customer_concentration),
            top3_customer_concentration=to_decimal(top3_customer_concentration),
            legal_tax_score=to_decimal(legal_tax_score),
            financial_score=to_decimal(financial_score),
            revenue_size_category=(
                parse_size_category(revenue_size_category) if revenue_size_category is not None else None
            ),
        )


@dataclass(frozen=True)
class RiskDiscountSummary:
    discounts: List[RiskDiscount] = field(default_factory=list)
    risk_multiplier: Decimal = ONE           # Π (1 − rate)
    risk_severity_score: Decimal = ZERO      # 1 − risk_multiplier

    @property
    def dlom_rate(self) -> Decimal:
        for discount in self.discounts:
            if discount.name == DLOM_NAME:
                return discount.rate
        return ZERO

    def rates_by_name(self):
        return {d.name: d.rate for d in self.discounts}


def _pct(value: Decimal) -> str:
    return f"{value * 100:.0f}%"


def calculate_dlom(size_category: Optional[RevenueSizeCategory]) -> RiskDiscount:
    rate = DLOM_BY_SIZE.get(size_category, DEFAULT_DLOM) if size_category is not None else DEFAULT_DLOM
    return RiskDiscount(
        name=DLOM_NAME,
        rate=rate,
        explanation=(
            f"Private companies are less liquid than public companies. Size-appropriate DLOM of "
            f"{_pct(rate)} applied based on revenue category."
        ),
        reducibility=STRUCTURAL,
    )


def calculate_key_person_discount(profile: RiskProfile) -> Optional[RiskDiscount]:
    """
    Key-person discount from owner involvement, modulated by transferability.

    Transferability 1.0 lowers the base rate by 25%, 0.0 raises it by 25%.
    """
    base_rate = KEY_PERSON_RATES.get(profile.owner_involvement or "", ZERO)
    if base_rate == 0:
        return None

    rate = base_rate
    score = profile.transferability_score
    if score is not None:
        modifier = 1 - (score - Decimal("0.5")) * Decimal("0.5")
        rate = clamp(base_rate * modifier, ZERO, MAX_KEY_PERSON_RATE)
    if rate < MIN_MEANINGFUL_RATE:
        return None

    score_text = _pct(score) if score is not None else "N/A"
    return RiskDiscount(
        name=KEY_PERSON_NAME,
        rate=round_to(rate, 2),
        explanation=(
            f"Owner involvement level \"{profile.owner_involvement}\" with transferability score of "
            f"{score_text}. Business dependent on current owner creates acquisition risk."
        ),
        reducibility=ADDRESSABLE,
    )


def calculate_concentration_discounts(profile: RiskProfile) -> List[RiskDiscount]:
    discounts: List[RiskDiscount] = []

    single = profile.top_customer_concentration
    if single is not None:
        for threshold, rate in (CONCENTRATION_SINGLE_HIGH, CONCENTRATION_SINGLE_MODERATE):
            if single >= threshold:
                discounts.append(RiskDiscount(
                    name=CONCENTRATION_SINGLE_NAME,
                    rate=rate,
                    explanation=(
                        f"Top customer represents {_pct(single)} of revenue. Losing this customer "
                        f"would materially impact the business."
                    ),
                    reducibility=STRUCTURAL,
                ))
                break

    top3 = profile.top3_customer_concentration
    single_already_high = any(d.rate >= CONCENTRATION_SINGLE_HIGH[1] for d in discounts)
    if top3 is not None and not single_already_high:
        for threshold, rate in (CONCENTRATION_TOP3_HIGH, CONCENTRATION_TOP3_MODERATE):
            if top3 >= threshold:
                discounts.append(RiskDiscount(
                    name=CONCENTRATION_TOP3_NAME,
                    rate=rate,
                    explanation=(
                        f"Top 3 customers represent {_pct(top3)} of revenue. A concentrated customer "
                        f"base creates material risk."
                    ),
                    reducibility=STRUCTURAL,
                ))
                break

    return discounts


def calculate_risk_discounts(profile: RiskProfile) -> RiskDiscountSummary:
    """
    Compute every applicable risk discount and the combined multiplier.

    DLOM always applies. The other discounts apply only when their inputs are
    known and cross a threshold.
    """
    discounts: List[RiskDiscount] = [calculate_dlom(profile.revenue_size_category)]

    key_person = calculate_key_person_discount(profile)
    if key_person:
        discounts.append(key_person)

    discounts.extend(calculate_concentration_discounts(profile))

    if profile.financial_score is not None and profile.financial_score < DOCS_DISCOUNT_THRESHOLD:
        discounts.append(RiskDiscount(
            name=DOCUMENTATION_NAME,
            rate=DOCS_DISCOUNT_RATE,
            explanation=(
                f"Financial documentation score of {_pct(profile.financial_score)} is below the "
                f"{_pct(DOCS_DISCOUNT_THRESHOLD)} threshold. Buyers increase their risk premium when "
                f"financials are poorly documented."
            ),
            reducibility=ADDRESSABLE,
        ))

    if profile.legal_tax_score is not None and profile.legal_tax_score < LEGAL_DISCOUNT_THRESHOLD:
        discounts.append(RiskDiscount(
            name=LEGAL_TAX_NAME,
            rate=LEGAL_DISCOUNT_RATE,
            explanation=(
                f"Legal/tax readiness score of {_pct(profile.legal_tax_score)} is below the "
                f"{_pct(LEGAL_DISCOUNT_THRESHOLD)} threshold. Unresolved legal or tax issues represent "
                f"material risk to buyers."
            ),
            reducibility=ADDRESSABLE,
        ))

    return summarize_risk_discounts(discounts)


def summarize_risk_discounts(discounts: List[RiskDiscount]) -> RiskDiscountSummary:
    """
    Combine discounts into a risk multiplier.

    Raises:
        ValueError: if any rate falls outside [0, 1)
    """
    multiplier = ONE
    for discount in discounts:
        if discount.rate < 0 or discount.rate >= 1:
            raise ValueError(f"Risk discount {discount.name!r} must be in [0, 1), got {discount.rate}")
        multiplier *= 1 - discount.rate
    logger.debug("Risk discounts %s -> multiplier %s", [d.name for d in discounts], multiplier)
    return RiskDiscountSummary(
        discounts=list(discounts),
        risk_multiplier=multiplier,
        risk_severity_score=1 - multiplier,
    )
