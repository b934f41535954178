"""OCR engine wrapping Tesseract."""

from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

try:
    import pytesseract
except ImportError:
    pytesseract = None

from .config import AppConfig, config as default_config, get_tesseract_path
from .errors import ImageLoadError, OcrError
from .image_utils import find_image, pil_to_cv2, preprocess_for_ocr, upscale_small_image


class OcrEngine:
    """Loads the bundled report image and reads its text with Tesseract.

    The engine's contract is small on purpose: given an image, return the
    recognized text fragments (one per line) in reading order.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or default_config

        # Configure Tesseract if available
        if pytesseract:
            tesseract_path = get_tesseract_path()
            if tesseract_path:
                pytesseract.pytesseract.tesseract_cmd = tesseract_path

    def load_image(self, image_name: str) -> np.ndarray:
        """Load a bundled image by logical name.

        Args:
            image_name: Name of the asset without extension

        Returns:
            Image in BGR format

        Raises:
            ImageLoadError: If the asset is missing or unreadable
        """
        path = find_image(self.config.ASSETS_DIR, image_name, self.config.IMAGE_EXTENSIONS)
        if path is None:
            raise ImageLoadError(f"Could not find image: {image_name}")

        try:
            with Image.open(path) as pil_img:
                return pil_to_cv2(pil_img)
        except (OSError, UnidentifiedImageError) as e:
            raise ImageLoadError(f"Could not load image: {path}") from e

    def recognize(self, image: np.ndarray) -> list[str]:
        """Run OCR and return text lines in reading order.

        Args:
            image: Image in BGR format

        Returns:
            Recognized lines, top to bottom

        Raises:
            OcrError: If Tesseract is unavailable or fails
        """
        if pytesseract is None:
            raise OcrError("pytesseract not installed - OCR is unavailable")

        if self.config.PREPROCESS:
            ocr_input = preprocess_for_ocr(upscale_small_image(image))
        else:
            ocr_input = image

        try:
            data = pytesseract.image_to_data(
                ocr_input,
                config=self.config.OCR_CONFIG,
                output_type=pytesseract.Output.DICT,
                timeout=self.config.OCR_TIMEOUT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, RuntimeError) as e:
            raise OcrError(f"Error recognizing text: {e}") from e

        return group_lines(data)

    def read_text(self, image_name: str) -> str:
        """Load an image and join its OCR lines into a single string."""
        image = self.load_image(image_name)
        return " ".join(self.recognize(image))


def group_lines(data: dict) -> list[str]:
    """Group Tesseract word boxes into lines.

    Args:
        data: Output of pytesseract.image_to_data with Output.DICT

    Returns:
        One string per (block, paragraph, line), in reading order
    """
    lines: dict[tuple, list[str]] = {}

    for i, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        if not word:
            continue
        # conf of -1 marks layout boxes with no text
        if float(data["conf"][i]) < 0:
            continue

        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        lines.setdefault(key, []).append(word)

    return [" ".join(words) for _, words in sorted(lines.items())]
