"""Regression checker comparing saved simulation states with reference runs."""
__version__ = "1.0.0"
