"""Image loading and OCR preprocessing utilities."""

from pathlib import Path

import cv2
import numpy as np
from PIL import Image


def pil_to_cv2(pil_image: Image.Image) -> np.ndarray:
    """Convert PIL Image to OpenCV format (BGR)."""
    if pil_image.mode != "RGB":
        pil_image = pil_image.convert("RGB")

    cv_image = np.array(pil_image)
    return cv2.cvtColor(cv_image, cv2.COLOR_RGB2BGR)


def find_image(assets_dir: Path, name: str, extensions: tuple) -> Path | None:
    """Resolve a logical image name to a file in the assets directory.

    Args:
        assets_dir: Directory holding bundled images
        name: Logical name without extension
        extensions: Extensions to try, in order

    Returns:
        Path to the first existing file, or None
    """
    for ext in extensions:
        candidate = Path(assets_dir) / f"{name}{ext}"
        if candidate.is_file():
            return candidate
    return None


def preprocess_for_ocr(image: np.ndarray) -> np.ndarray:
    """Preprocess image for OCR.

    Args:
        image: Input image in BGR format

    Returns:
        Preprocessed binary image
    """
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

    # Light blur so the threshold doesn't pick up JPEG noise
    blurred = cv2.GaussianBlur(gray, (3, 3), 0)

    binary = cv2.adaptiveThreshold(
        blurred, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 11, 2
    )

    return binary


def upscale_small_image(image: np.ndarray, min_height: int = 600) -> np.ndarray:
    """Upscale screenshots that are too small for Tesseract.

    Args:
        image: Input image
        min_height: Height below which the image is enlarged

    Returns:
        Original or enlarged image
    """
    h, w = image.shape[:2]
    if h >= min_height:
        return image

    ratio = min_height / h
    return cv2.resize(image, (int(w * ratio), min_height), interpolation=cv2.INTER_CUBIC)
