"""
Calculation services: scoring, valuation, drift, signals and tasks.
"""
