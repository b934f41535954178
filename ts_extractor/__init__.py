"""TS Extractor - Recover time-series data from OCR'd JSON reports."""

__version__ = "1.0.0"
__author__ = "Dan Ribes"

from .decoder import TimeSeriesRecord, decode
from .extractor import extract_time_series
from .normalizer import normalize
from .pipeline import ExtractionResult, TextExtractor, process_text

__all__ = [
    "normalize",
    "extract_time_series",
    "decode",
    "process_text",
    "TextExtractor",
    "ExtractionResult",
    "TimeSeriesRecord",
    "__version__",
]
