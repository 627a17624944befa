"""
types.py — Signal Data Layer

Purpose:
- Define the enums and the Signal record shared by ranking, grouping,
  confidence scoring and value-at-risk.
- Coerce loosely typed values (strings from storage) into enums, failing
  loudly on anything unrecognised.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Type, TypeVar, Union

from exitready.core.categories import BriCategory, CategoryKey, parse_category
from exitready.core.numeric import Number, to_decimal


class UnknownSignalValueError(ValueError):
    """Raised when a severity, confidence, status or channel value is not recognised."""


class SignalSeverity(str, Enum):
    INFO = "INFO"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ConfidenceLevel(str, Enum):
    UNCERTAIN = "UNCERTAIN"
    SOMEWHAT_CONFIDENT = "SOMEWHAT_CONFIDENT"
    CONFIDENT = "CONFIDENT"
    VERIFIED = "VERIFIED"
    NOT_APPLICABLE = "NOT_APPLICABLE"


class ResolutionStatus(str, Enum):
    OPEN = "OPEN"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"
    EXPIRED = "EXPIRED"


class SignalChannel(str, Enum):
    PROMPTED_DISCLOSURE = "PROMPTED_DISCLOSURE"
    TASK_GENERATED = "TASK_GENERATED"
    TIME_DECAY = "TIME_DECAY"
    EXTERNAL = "EXTERNAL"
    ADVISOR = "ADVISOR"


E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: Type[E], value: Union[E, str]) -> E:
    """
    Coerce a value to ``enum_cls``.

    Raises:
        UnknownSignalValueError: if the value is not a member
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise UnknownSignalValueError(f"Unknown {enum_cls.__name__} value: {value!r}") from None


@dataclass(frozen=True)
class Signal:
    """A detected risk or opportunity. Only resolution_status changes over a signal's life."""
    id: str
    severity: SignalSeverity
    confidence: ConfidenceLevel
    resolution_status: ResolutionStatus
    event_type: str
    title: str
    estimated_value_impact: Optional[Decimal] = None   # signed; None = unknown
    category: Optional[BriCategory] = None
    channel: Optional[SignalChannel] = None
    description: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        id: str,
        severity: Union[SignalSeverity, str],
        confidence: Union[ConfidenceLevel, str],
        event_type: str,
        title: str,
        resolution_status: Union[ResolutionStatus, str] = ResolutionStatus.OPEN,
        estimated_value_impact: Optional[Number] = None,
        category: Optional[CategoryKey] = None,
        channel: Optional[Union[SignalChannel, str]] = None,
        description: str = "",
        created_at: Optional[datetime] = None,
    ) -> "Signal":
        """Build a signal from loosely typed values, validating every enum."""
        return cls(
            id=id,
            severity=parse_enum(SignalSeverity, severity),
            confidence=parse_enum(ConfidenceLevel, confidence),
            resolution_status=parse_enum(ResolutionStatus, resolution_status),
            event_type=event_type,
            title=title,
            estimated_value_impact=to_decimal(estimated_value_impact),
            category=parse_category(category) if category is not None else None,
            channel=parse_enum(SignalChannel, channel) if channel is not None else None,
            description=description,
            created_at=created_at,
        )
