"""Camera module for view and ray generation.

Components:
    thin_lens: Positionable camera with depth of field

Ray generation uses normalized viewport coordinates:
    s in [0, 1]: left to right across the image
    t in [0, 1]: bottom to top across the image
"""

from .thin_lens import (
    ThinLensCamera,
    compute_camera_basis,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "compute_camera_basis",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_camera_info",
]
