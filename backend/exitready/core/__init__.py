"""
Shared configuration, logging and constants for the engine.
"""
