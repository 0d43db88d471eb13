"""laytime package"""
from .calculator import LaytimeCalculator, LaytimeEntry, LaytimeError, LaytimeResult
__all__ = ["LaytimeCalculator", "LaytimeEntry", "LaytimeError", "LaytimeResult"]
