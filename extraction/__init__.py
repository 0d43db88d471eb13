"""extraction package"""
from .extractor import ExtractionError, SofExtractor
from .schemas import (
    LaytimeCalculationModel, LaytimeEventModel, PortEventModel,
    SofExtraction, SubEventModel, TimelineBlockModel,
)
__all__ = [
    "ExtractionError", "SofExtractor",
    "LaytimeCalculationModel", "LaytimeEventModel", "PortEventModel",
    "SofExtraction", "SubEventModel", "TimelineBlockModel",
]
