"""
Image Preprocessor Module.

Turns a decoded page image into the high-contrast, upscaled bitmap the
recognizer reads best:

    1. Upscale by an integer factor (small receipt fonts fall below the
       effective DPI Tesseract needs)
    2. Grayscale with perceptual luma weights
    3. Two-band binarization
    4. Median denoise over a small neighborhood

Decoding (EXIF orientation, alpha flattening) also lives here so every
page reaches ``enhance`` in the same RGB form.
"""

import io
from typing import Dict, Optional

from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from config import get_config
from receipt_engine.utils.logger import get_logger
from receipt_engine.utils.exceptions import PreprocessingFailure

logger = get_logger(__name__)

RESAMPLE_FILTERS: Dict[str, int] = {
    'nearest': Image.NEAREST,
    'bilinear': Image.BILINEAR,
    'bicubic': Image.BICUBIC,
    'lanczos': Image.LANCZOS,
}


class ImagePreprocessor:
    """
    Deterministic image enhancement for OCR.

    Attributes:
        scale_factor: Integer upscale factor.
        max_side: Upper bound on either side after upscaling; larger pages are never shrunk.
        high_threshold: Gray level above which a pixel is background.
        low_threshold: Gray level below which a pixel is ink.
        mid_threshold: Threshold applied to the band in between.
        median_size: Median filter window (odd).

    Example:
        >>> preprocessor = ImagePreprocessor()
        >>> page = preprocessor.decode(payload, "receipt.jpg")
        >>> bitmap = preprocessor.enhance(page)
    """

    def __init__(
        self,
        scale_factor: Optional[int] = None,
        max_side: Optional[int] = None,
        high_threshold: Optional[int] = None,
        low_threshold: Optional[int] = None,
        mid_threshold: Optional[int] = None,
        median_size: Optional[int] = None,
        resample: Optional[str] = None
    ) -> None:
        self.scale_factor = int(scale_factor or get_config("preprocessing.scale_factor", 3))
        self.max_side = int(max_side or get_config("preprocessing.max_side", 7000))
        self.high_threshold = int(
            high_threshold if high_threshold is not None
            else get_config("preprocessing.high_threshold", 140)
        )
        self.low_threshold = int(
            low_threshold if low_threshold is not None
            else get_config("preprocessing.low_threshold", 100)
        )
        self.mid_threshold = int(
            mid_threshold if mid_threshold is not None
            else get_config("preprocessing.mid_threshold", 120)
        )
        self.median_size = int(median_size or get_config("preprocessing.median_size", 3))
        resample_name = (resample or get_config("preprocessing.resample", "lanczos")).lower()
        self.resample = RESAMPLE_FILTERS.get(resample_name, Image.LANCZOS)

        if self.scale_factor < 1:
            raise ValueError("scale_factor must be a positive integer")
        if self.median_size % 2 == 0:
            raise ValueError("median_size must be odd")
        if not self.low_threshold <= self.mid_threshold <= self.high_threshold:
            raise ValueError("thresholds must satisfy low <= mid <= high")

        self._lookup = self._build_threshold_table()

        logger.debug(
            f"ImagePreprocessor initialized (scale={self.scale_factor}, "
            f"thresholds={self.low_threshold}/{self.mid_threshold}/{self.high_threshold})"
        )

    def decode(self, payload: bytes, source: str = "<bytes>") -> Image.Image:
        """
        Decode raw image bytes into an upright RGB image.

        Raises:
            PreprocessingFailure: If the bytes are not a readable image.
        """
        try:
            image = Image.open(io.BytesIO(payload))
            image.load()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.error(f"Could not decode image {source}: {e}")
            raise PreprocessingFailure(source, str(e))

        image = ImageOps.exif_transpose(image)
        return self._convert_to_rgb(image)

    def enhance(self, image: Image.Image) -> Image.Image:
        """
        Run the four enhancement steps and return a new 'L' mode image.

        The input image is not modified.
        """
        upscaled = self._upscale(image)
        gray = self._to_grayscale(upscaled)
        binary = self._binarize(gray)
        cleaned = self._denoise(binary)

        logger.debug(
            f"Enhanced image {image.width}x{image.height} -> "
            f"{cleaned.width}x{cleaned.height}"
        )
        return cleaned

    def _convert_to_rgb(self, image: Image.Image) -> Image.Image:
        """Flatten transparency onto white and convert other modes to RGB."""
        if image.mode == 'RGB':
            return image

        if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
            rgba = image.convert('RGBA')
            background = Image.new('RGB', rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[3])
            return background

        return image.convert('RGB')

    def _upscale(self, image: Image.Image) -> Image.Image:
        width, height = image.size
        factor = float(self.scale_factor)

        longest = max(width, height) * factor
        if longest > self.max_side:
            # pages already past max_side keep their size
            factor = max(1.0, self.max_side / float(max(width, height)))
            logger.debug(f"Upscale limited to {factor:.2f}x by max_side={self.max_side}")

        if factor == 1.0:
            return image.copy()

        new_size = (max(1, int(round(width * factor))), max(1, int(round(height * factor))))
        return image.resize(new_size, self.resample)

    def _to_grayscale(self, image: Image.Image) -> Image.Image:
        # Pillow's L conversion is ITU-R 601-2 luma: .299 R + .587 G + .114 B
        if image.mode == 'L':
            return image
        if image.mode != 'RGB':
            image = self._convert_to_rgb(image)
        return image.convert('L')

    def _build_threshold_table(self):
        table = []
        for level in range(256):
            if level > self.high_threshold:
                table.append(255)
            elif level < self.low_threshold:
                table.append(0)
            else:
                table.append(255 if level > self.mid_threshold else 0)
        return table

    def _binarize(self, gray: Image.Image) -> Image.Image:
        return gray.point(self._lookup, 'L')

    def _denoise(self, image: Image.Image) -> Image.Image:
        return image.filter(ImageFilter.MedianFilter(size=self.median_size))
