"""Exceptions raised by the extraction pipeline."""

from enum import Enum


class ErrorKind(Enum):
    """Stage at which an extraction failed."""
    IMAGE_LOAD = "image_load"
    OCR = "ocr"
    JSON_PARSE = "json_parse"
    DECODE = "decode"


class ImageLoadError(ValueError):
    """The bundled image could not be found or opened."""


class OcrError(RuntimeError):
    """Tesseract failed or is not available."""


class ExtractionInProgressError(RuntimeError):
    """An extraction was requested while another one is still running."""


class DecodeError(ValueError):
    """JSON parsed but does not have the time_series shape."""
