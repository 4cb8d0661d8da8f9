"""
Image loader implementation
"""
import logging
from typing import Iterable, Optional
from io import BytesIO

import numpy as np
import cv2
from PIL import Image, UnidentifiedImageError

from ..domain.interfaces import ImageLoaderInterface

logger = logging.getLogger(__name__)


def is_image_mime_type(mime_type: Optional[str], allowed: Optional[Iterable[str]] = None) -> bool:
    """Uploads must declare an image type, and one of ``allowed`` when given"""
    if not mime_type:
        return False
    mime_type = mime_type.split(";", 1)[0].strip().lower()
    if allowed is not None:
        return mime_type in {m.lower() for m in allowed}
    return mime_type.startswith("image/")


class ImageLoader(ImageLoaderInterface):
    """Image loader for uploaded bytes"""

    def __init__(self, max_image_size: int = 10 * 1024 * 1024):
        self.max_image_size = max_image_size

    def load_from_bytes(self, data: bytes) -> Optional[np.ndarray]:
        """Load image from bytes"""
        if not data:
            logger.error("Empty image data")
            return None

        if len(data) > self.max_image_size:
            logger.error(f"Image too large: {len(data)} bytes")
            return None

        return self._decode_image(data)

    def _decode_image(self, data: bytes) -> Optional[np.ndarray]:
        """Decode image bytes to a BGR numpy array"""
        try:
            # Try PIL first (better format support)
            pil_image = Image.open(BytesIO(data))

            if pil_image.mode != 'RGB':
                pil_image = pil_image.convert('RGB')

            image = np.array(pil_image)

            # InsightFace and OpenCV expect BGR
            return cv2.cvtColor(image, cv2.COLOR_RGB2BGR)

        except Image.DecompressionBombError as e:
            # No OpenCV retry: the pixel count itself is the problem
            logger.error(f"Rejected oversized image: {e}")
            return None
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"PIL failed, trying OpenCV: {e}")

        nparr = np.frombuffer(data, np.uint8)
        image = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        if image is None:
            logger.error("OpenCV failed to decode image")
            return None
        return image
