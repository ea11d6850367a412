# riskwise/__init__.py
"""Risk register with scored analysis, stable identifiers and AI-assisted suggestions."""

__version__ = "0.1.0"
