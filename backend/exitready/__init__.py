"""
exitready — Buyer-readiness scoring and exit valuation engine.

Pure, deterministic calculations for category scoring, valuation (V1/V2),
value-gap decomposition, month-over-month drift, signal ranking and task
prioritisation. No I/O happens inside this package.
"""

__version__ = "0.1.0"
