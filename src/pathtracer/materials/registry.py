"""Checks shared by the per-type material registries."""

from collections.abc import Sequence

# Capacity of each per-type registry
MAX_MATERIALS_PER_TYPE = 1024


def check_albedo(albedo: Sequence[float]) -> tuple[float, float, float]:
    """Validate an RGB reflectance and return it as a float triple.

    Raises:
        ValueError: If albedo does not have 3 components or one of them lies
            outside [0, 1]. A larger component would reflect more light than
            arrives.
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo needs 3 components, got {len(albedo)}")
    for channel, component in zip("RGB", albedo):
        if not 0.0 <= component <= 1.0:
            raise ValueError(f"Albedo {channel} = {component} is outside [0, 1]")
    return (float(albedo[0]), float(albedo[1]), float(albedo[2]))


def check_capacity(count: int, kind: str) -> None:
    """Raise RuntimeError when a registry of the given kind is full."""
    if count >= MAX_MATERIALS_PER_TYPE:
        raise RuntimeError(
            f"Maximum number of {kind} materials ({MAX_MATERIALS_PER_TYPE}) exceeded"
        )
