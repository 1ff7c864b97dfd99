"""Fraud risk decisioning engine."""

__version__ = "0.1.0"
