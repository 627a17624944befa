"""
snapshot.py — Valuation Snapshots and Snapshot History

Purpose:
- Run the full scoring → valuation → value-gap pipeline for one scoring event
  and capture every figure in an immutable ValuationSnapshot.
- Keep snapshots in an append-only, versioned history so period comparisons
  (drift) never special-case the first run or overwrite an earlier figure.

Inputs are plain data handed over by the persistence layer; nothing here
reads or writes storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence, Tuple

from exitready.core.categories import BriCategory, CategoryKey, resolve_category_weights
from exitready.core.logging import get_logger
from exitready.core.numeric import ZERO, Number, dec
from exitready.services.scoring.category_scorer import (
    AssessmentQuestion,
    AssessmentResponse,
    score_categories,
)
from exitready.services.scoring.core_score import CoreFactors, calculate_core_score
from exitready.services.valuation.ebitda import (
    calculate_ebitda_improvement_potential,
    normalize_ebitda,
)
from exitready.services.valuation.industry_multiples import DEFAULT_MULTIPLES, IndustryMultiples
from exitready.services.valuation.multiple_adjustments import (
    QualityProfile,
    calculate_multiple_adjustments,
    calculate_spread_factor,
)
from exitready.services.valuation.risk_discounts import RiskProfile, calculate_risk_discounts
from exitready.services.valuation.valuation_v1 import calculate_valuation
from exitready.services.valuation.valuation_v2 import calculate_valuation_v2
from exitready.services.valuation.value_gap import GapComponent, calculate_value_gap_v2

logger = get_logger(__name__)


class SnapshotReason(str, Enum):
    ASSESSMENT_COMPLETED = "ASSESSMENT_COMPLETED"
    FACTOR_EDIT = "FACTOR_EDIT"
    MONTHLY_DRIFT = "MONTHLY_DRIFT"


@dataclass(frozen=True)
class ValuationSnapshot:
    """Every figure produced by one scoring event. Never mutated."""
    created_at: datetime
    reason: SnapshotReason
    adjusted_ebitda: Decimal
    industry_multiple_low: Decimal
    industry_multiple_high: Decimal
    core_score: Decimal
    bri_score: Decimal
    category_scores: Mapping[BriCategory, Decimal]
    # Displayed figures (V2 mid-point and gap)
    current_value: Decimal
    potential_value: Decimal
    value_gap: Decimal
    # V1
    base_multiple: Decimal
    discount_fraction: Decimal
    final_multiple: Decimal
    v1_current_value: Decimal
    v1_potential_value: Decimal
    v1_value_gap: Decimal
    # V2
    business_quality_score: Decimal
    deal_readiness_score: Optional[Decimal]
    risk_severity_score: Decimal
    industry_median_multiple: Decimal
    quality_adjusted_multiple: Decimal
    risk_adjusted_multiple: Decimal
    ev_low: Decimal
    ev_mid: Decimal
    ev_high: Decimal
    dlom_rate: Decimal
    dlom_amount: Decimal
    addressable_gap: Decimal
    structural_gap: Decimal
    aspirational_gap: Decimal
    ebitda_improvement_potential: Decimal = ZERO
    gap_components: Tuple[GapComponent, ...] = ()
    company_id: Optional[str] = None
    version: int = 0   # assigned by SnapshotHistory.append


@dataclass(frozen=True)
class SnapshotInputs:
    """Everything the pipeline needs for one company at one point in time."""
    responses: Sequence[AssessmentResponse]
    annual_revenue: Decimal
    annual_ebitda: Decimal
    core_factors: CoreFactors = field(default_factory=CoreFactors)
    multiples: IndustryMultiples = DEFAULT_MULTIPLES
    add_backs: Decimal = ZERO
    deductions: Decimal = ZERO
    owner_compensation: Optional[Decimal] = None
    revenue_size_category: Optional[str] = None
    revenue_growth_rate: Optional[Decimal] = None
    top_customer_concentration: Optional[Decimal] = None
    top3_customer_concentration: Optional[Decimal] = None
    is_recurring_revenue: bool = False
    questions: Optional[Sequence[AssessmentQuestion]] = None
    company_weights: Optional[Mapping[CategoryKey, Number]] = None
    global_weights: Optional[Mapping[CategoryKey, Number]] = None
    comparable_count: Optional[int] = None
    comparable_multiples: Sequence[Number] = ()
    disabled_adjustments: Sequence[str] = ()
    company_id: Optional[str] = None


def build_valuation_snapshot(
    inputs: SnapshotInputs,
    created_at: datetime,
    reason: SnapshotReason = SnapshotReason.ASSESSMENT_COMPLETED,
) -> Optional[ValuationSnapshot]:
    """
    Run scoring, EBITDA normalization, V1, V2 and the value-gap split.

    Args:
        inputs: Company data for this scoring event
        created_at: Timestamp to stamp on the snapshot
        reason: What triggered the scoring event

    Returns:
        ValuationSnapshot, or None when no BRI score is available (no
        category carries weight), in which case nothing should be persisted
    """
    resolved = resolve_category_weights(inputs.company_weights, inputs.global_weights)
    scoring = score_categories(inputs.responses, resolved.weights, inputs.questions)
    if scoring.bri_score is None:
        logger.debug("No BRI available for company %s; snapshot skipped", inputs.company_id)
        return None

    category_scores = scoring.category_scores
    # Categories without active questions are unknown, not zero, for V2 inputs.
    assessed = {c.category: c.score for c in scoring.categories if c.has_questions()}
    core_score = calculate_core_score(inputs.core_factors)

    ebitda = normalize_ebitda(
        annual_revenue=inputs.annual_revenue,
        annual_ebitda=inputs.annual_ebitda,
        add_backs=inputs.add_backs,
        deductions=inputs.deductions,
        owner_compensation=inputs.owner_compensation,
        multiples=inputs.multiples,
        size_category=inputs.revenue_size_category,
    )
    adjusted = ebitda.adjusted_ebitda
    revenue = dec(inputs.annual_revenue)

    v1 = calculate_valuation(adjusted, inputs.multiples, core_score, scoring.bri_score)

    margin = adjusted / revenue if revenue > 0 else None
    # Customer concentration is priced once, as a structural risk discount.
    quality = calculate_multiple_adjustments(
        QualityProfile.create(
            annual_revenue=revenue,
            revenue_size_category=ebitda.size_category,
            revenue_growth_rate=inputs.revenue_growth_rate,
            ebitda_margin=margin,
            transferability_score=assessed.get(BriCategory.TRANSFERABILITY),
            revenue_model=inputs.core_factors.revenue_model,
            is_recurring_revenue=inputs.is_recurring_revenue,
        ),
        disabled_factors=inputs.disabled_adjustments,
    )
    risk = calculate_risk_discounts(
        RiskProfile.create(
            owner_involvement=inputs.core_factors.owner_involvement,
            transferability_score=assessed.get(BriCategory.TRANSFERABILITY),
            top_customer_concentration=inputs.top_customer_concentration,
            top3_customer_concentration=inputs.top3_customer_concentration,
            legal_tax_score=assessed.get(BriCategory.LEGAL_TAX),
            financial_score=assessed.get(BriCategory.FINANCIAL),
            revenue_size_category=ebitda.size_category,
        )
    )
    spread = (
        calculate_spread_factor(inputs.comparable_count, inputs.comparable_multiples)
        if inputs.comparable_count is not None else None
    )
    v2 = calculate_valuation_v2(
        adjusted, inputs.multiples, quality, risk,
        spread_factor=spread, category_scores=assessed,
    )
    gap = calculate_value_gap_v2(adjusted, inputs.multiples, v2)

    return ValuationSnapshot(
        created_at=created_at,
        reason=reason,
        adjusted_ebitda=adjusted,
        industry_multiple_low=inputs.multiples.ebitda_low,
        industry_multiple_high=inputs.multiples.ebitda_high,
        core_score=core_score,
        bri_score=scoring.bri_score,
        category_scores=MappingProxyType(dict(category_scores)),
        base_multiple=v1.base_multiple,
        discount_fraction=v1.discount_fraction,
        final_multiple=v1.final_multiple,
        current_value=v2.ev_mid,
        potential_value=gap.potential_value,
        value_gap=gap.total_gap,
        v1_current_value=v1.current_value,
        v1_potential_value=v1.potential_value,
        v1_value_gap=v1.value_gap,
        business_quality_score=v2.business_quality_score,
        deal_readiness_score=v2.deal_readiness_score,
        risk_severity_score=v2.risk_severity_score,
        industry_median_multiple=v2.industry_median_multiple,
        quality_adjusted_multiple=v2.quality_adjusted_multiple,
        risk_adjusted_multiple=v2.risk_adjusted_multiple,
        ev_low=v2.ev_low,
        ev_mid=v2.ev_mid,
        ev_high=v2.ev_high,
        dlom_rate=v2.dlom_rate,
        dlom_amount=v2.dlom_amount,
        addressable_gap=gap.addressable_gap,
        structural_gap=gap.structural_gap,
        aspirational_gap=gap.aspirational_gap,
        gap_components=tuple(gap.components),
        ebitda_improvement_potential=calculate_ebitda_improvement_potential(assessed, resolved.weights),
        company_id=inputs.company_id,
    )


# =============================================================================
# History
# =============================================================================

@dataclass(frozen=True)
class SnapshotHistory:
    """
    Append-only, versioned list of snapshots for one company.

    append() returns a new history; existing snapshots are never replaced.
    """
    snapshots: Tuple[ValuationSnapshot, ...] = ()

    def __len__(self) -> int:
        return len(self.snapshots)

    def append(self, snapshot: ValuationSnapshot) -> "SnapshotHistory":
        """
        Add a snapshot, stamping it with the next version number.

        Raises:
            ValueError: if the snapshot is older than the latest one
        """
        latest = self.latest()
        if latest is not None and snapshot.created_at < latest.created_at:
            raise ValueError(
                f"Snapshot at {snapshot.created_at.isoformat()} predates latest {latest.created_at.isoformat()}"
            )
        stamped = replace(snapshot, version=len(self.snapshots) + 1)
        return SnapshotHistory(self.snapshots + (stamped,))

    def latest(self) -> Optional[ValuationSnapshot]:
        return self.snapshots[-1] if self.snapshots else None

    def previous(self) -> Optional[ValuationSnapshot]:
        return self.snapshots[-2] if len(self.snapshots) > 1 else None

    def at_or_before(self, when: datetime) -> Optional[ValuationSnapshot]:
        """The most recent snapshot created at or before ``when``."""
        for snapshot in reversed(self.snapshots):
            if snapshot.created_at <= when:
                return snapshot
        return None

    def for_period(self, period_start: datetime, period_end: datetime) -> Tuple[Optional[ValuationSnapshot], Optional[ValuationSnapshot]]:
        """(previous, current) snapshots bracketing a drift period."""
        return self.at_or_before(period_start), self.at_or_before(period_end)

    @classmethod
    def from_snapshots(cls, snapshots: Iterable[ValuationSnapshot]) -> "SnapshotHistory":
        history = cls()
        for snapshot in sorted(snapshots, key=lambda s: s.created_at):
            history = history.append(snapshot)
        return history
