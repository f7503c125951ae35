"""
Commercial real estate underwriting engine.
"""

__version__ = "0.1.0"
