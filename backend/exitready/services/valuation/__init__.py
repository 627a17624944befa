"""
Valuation engine: EBITDA normalization, V1 and V2 valuation, value-gap split and snapshots.
"""

from exitready.services.valuation.ebitda import AdjustedEbitdaResult, RevenueSizeCategory, normalize_ebitda
from exitready.services.valuation.industry_multiples import DEFAULT_MULTIPLES, IndustryMultiples
from exitready.services.valuation.multiple_adjustments import (
    AdjustmentSummary,
    MultipleAdjustment,
    QualityProfile,
    calculate_multiple_adjustments,
)
from exitready.services.valuation.risk_discounts import (
    RiskDiscount,
    RiskDiscountSummary,
    RiskProfile,
    calculate_risk_discounts,
)
from exitready.services.valuation.snapshot import (
    SnapshotHistory,
    SnapshotInputs,
    SnapshotReason,
    ValuationSnapshot,
    build_valuation_snapshot,
)
from exitready.services.valuation.valuation_v1 import V1Result, calculate_valuation
from exitready.services.valuation.valuation_v2 import V2Result, calculate_valuation_v2
from exitready.services.valuation.value_gap import ValueGapV2Result, calculate_value_gap_v2

__all__ = [
    "AdjustedEbitdaResult",
    "AdjustmentSummary",
    "DEFAULT_MULTIPLES",
    "IndustryMultiples",
    "MultipleAdjustment",
    "QualityProfile",
    "RevenueSizeCategory",
    "RiskDiscount",
    "RiskDiscountSummary",
    "RiskProfile",
    "SnapshotHistory",
    "SnapshotInputs",
    "SnapshotReason",
    "V1Result",
    "V2Result",
    "ValuationSnapshot",
    "ValueGapV2Result",
    "build_valuation_snapshot",
    "calculate_multiple_adjustments",
    "calculate_risk_discounts",
    "calculate_valuation",
    "calculate_valuation_v2",
    "calculate_value_gap_v2",
    "normalize_ebitda",
]
