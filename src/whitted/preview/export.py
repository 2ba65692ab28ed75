"""Image export utilities for rendered images.

Supported formats:
    - PNG (8-bit via Pillow)
    - PPM (binary P6, 8 bits per channel)

Both writers quantize each channel as int(255 * clamp(c, 0, 1)), truncating
rather than rounding, so PNG and PPM output of the same image carry the same
bytes.

Example:
    >>> from whitted.core.render import render_image, get_image_numpy
    >>> from whitted.preview.export import save_ppm
    >>>
    >>> render_image()
    >>> save_ppm(get_image_numpy(), "out.ppm")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from whitted.preview.display import ToneMapMethod, process_image_for_display

logger = logging.getLogger(__name__)


def _check_image_shape(image: np.ndarray) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected image of shape (H, W, 3), got {image.shape}")


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a float image to uint8 for display/export.

    Args:
        image: Image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none" or "reinhard").
        gamma: Gamma correction value (1.0 keeps linear output).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    image = np.asarray(image)
    _check_image_shape(image)
    processed = process_image_for_display(image, tone_map=tone_map, gamma=gamma)
    return (processed * 255).astype(np.uint8)


def save_png(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
) -> None:
    """Save an image as an 8-bit RGB PNG file.

    Args:
        image: Image array of shape (H, W, 3), row 0 at the top.
        filepath: Output file path (should end in .png).
        tone_map: Tone mapping method ("none" or "reinhard").
        gamma: Gamma correction value.
    """
    image_uint8 = image_to_uint8(image, tone_map=tone_map, gamma=gamma)
    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath)
    logger.info("Saved %dx%d PNG to %s", image_uint8.shape[1], image_uint8.shape[0], filepath)


def save_ppm(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = 1.0,
) -> None:
    """Save an image as a binary (P6) PPM file.

    The file is the header "P6\\n<width> <height>\\n255\\n" followed by one
    RGB byte triple per pixel, rows top to bottom.

    Args:
        image: Image array of shape (H, W, 3), row 0 at the top.
        filepath: Output file path (should end in .ppm).
        gamma: Gamma correction value.
    """
    image_uint8 = image_to_uint8(image, gamma=gamma)
    height, width = image_uint8.shape[:2]
    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath, format="PPM")
    logger.info("Saved %dx%d PPM to %s", width, height, filepath)


def load_ppm(filepath: str | Path) -> npt.NDArray[np.uint8]:
    """Read a binary PPM file back into a (H, W, 3) uint8 array via Pillow."""
    with PILImage.open(filepath) as pil_image:
        return np.asarray(pil_image.convert("RGB"), dtype=np.uint8)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
