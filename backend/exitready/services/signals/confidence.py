"""
confidence.py — Signal Confidence Scoring

Confidence weights how much a signal's dollar impact is trusted. Weighting is
never an amplifier: VERIFIED (and NOT_APPLICABLE, which is treated the same)
keep 100% of the raw amount.
"""

from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional, Union

from exitready.core.numeric import Number, to_decimal
from exitready.services.signals.types import ConfidenceLevel, SignalChannel, parse_enum

CONFIDENCE_MULTIPLIERS: Mapping[ConfidenceLevel, Decimal] = MappingProxyType({
    ConfidenceLevel.UNCERTAIN: Decimal("0.5"),
    ConfidenceLevel.SOMEWHAT_CONFIDENT: Decimal("0.7"),
    ConfidenceLevel.CONFIDENT: Decimal("0.85"),
    ConfidenceLevel.VERIFIED: Decimal("1.0"),
    ConfidenceLevel.NOT_APPLICABLE: Decimal("1.0"),
})

_UPGRADES: Mapping[ConfidenceLevel, ConfidenceLevel] = MappingProxyType({
    ConfidenceLevel.UNCERTAIN: ConfidenceLevel.SOMEWHAT_CONFIDENT,
    ConfidenceLevel.SOMEWHAT_CONFIDENT: ConfidenceLevel.CONFIDENT,
    ConfidenceLevel.CONFIDENT: ConfidenceLevel.VERIFIED,
    ConfidenceLevel.VERIFIED: ConfidenceLevel.VERIFIED,
    ConfidenceLevel.NOT_APPLICABLE: ConfidenceLevel.NOT_APPLICABLE,
})

_DOWNGRADES: Mapping[ConfidenceLevel, ConfidenceLevel] = MappingProxyType({
    ConfidenceLevel.VERIFIED: ConfidenceLevel.CONFIDENT,
    ConfidenceLevel.CONFIDENT: ConfidenceLevel.SOMEWHAT_CONFIDENT,
    ConfidenceLevel.SOMEWHAT_CONFIDENT: ConfidenceLevel.UNCERTAIN,
    ConfidenceLevel.UNCERTAIN: ConfidenceLevel.UNCERTAIN,
    ConfidenceLevel.NOT_APPLICABLE: ConfidenceLevel.NOT_APPLICABLE,
})

DEFAULT_CONFIDENCE_BY_CHANNEL: Mapping[SignalChannel, ConfidenceLevel] = MappingProxyType({
    SignalChannel.PROMPTED_DISCLOSURE: ConfidenceLevel.SOMEWHAT_CONFIDENT,
    SignalChannel.TASK_GENERATED: ConfidenceLevel.CONFIDENT,
    SignalChannel.TIME_DECAY: ConfidenceLevel.CONFIDENT,
    SignalChannel.EXTERNAL: ConfidenceLevel.SOMEWHAT_CONFIDENT,
    SignalChannel.ADVISOR: ConfidenceLevel.CONFIDENT,
})


def confidence_multiplier(confidence: Union[ConfidenceLevel, str]) -> Decimal:
    return CONFIDENCE_MULTIPLIERS[parse_enum(ConfidenceLevel, confidence)]


def apply_confidence_weight(amount: Optional[Number], confidence: Union[ConfidenceLevel, str]) -> Optional[Decimal]:
    """amount × confidence multiplier; sign preserved, None stays None."""
    value = to_decimal(amount)
    if value is None:
        return None
    return value * confidence_multiplier(confidence)


def upgrade_confidence(confidence: Union[ConfidenceLevel, str]) -> ConfidenceLevel:
    """Confidence after corroborating evidence (e.g. an advisor confirms)."""
    return _UPGRADES[parse_enum(ConfidenceLevel, confidence)]


def downgrade_confidence(confidence: Union[ConfidenceLevel, str]) -> ConfidenceLevel:
    """Confidence after contradicting evidence."""
    return _DOWNGRADES[parse_enum(ConfidenceLevel, confidence)]


def default_confidence_for_channel(channel: Union[SignalChannel, str]) -> ConfidenceLevel:
    return DEFAULT_CONFIDENCE_BY_CHANNEL[parse_enum(SignalChannel, channel)]
