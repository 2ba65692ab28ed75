"""Preview module for output and visualization.

Components:
    display: Matplotlib-based preview display and gamma/tone mapping helpers
    export: PNG and binary PPM image export

Example:
    >>> from whitted.preview import save_png, show_preview
    >>> from whitted.core.render import get_image_numpy
    >>>
    >>> image = get_image_numpy()
    >>> save_png(image, "output.png")
    >>> show_preview(image)
"""

from whitted.preview.display import (
    ToneMapMethod,
    apply_gamma,
    process_image_for_display,
    show_preview,
    tone_map_reinhard,
)
from whitted.preview.export import (
    compute_rmse,
    image_to_uint8,
    load_ppm,
    save_png,
    save_ppm,
)

__all__ = [
    # Display functions
    "show_preview",
    "tone_map_reinhard",
    "apply_gamma",
    "process_image_for_display",
    "ToneMapMethod",
    # Export functions
    "save_png",
    "save_ppm",
    "load_ppm",
    "image_to_uint8",
    "compute_rmse",
]
