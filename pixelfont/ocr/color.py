"""
Color Model

Blend feasibility test and color decomposition used by the matcher and the
unblending preprocessors.

All functions accept either a single color triplet or numpy arrays whose
last axis holds the (r, g, b) channels; arrays broadcast against each other
so whole images can be processed without Python loops.
"""

from typing import Sequence, Tuple, Union

import numpy as np


# Upper bound of the extrapolation factor p / (1 - p). Keeps the test finite
# as the glyph intensity approaches 1.
MAX_BLEND_RATIO = 50.0

ColorLike = Union[Sequence[float], np.ndarray]


def _channels(color: ColorLike) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    arr = np.asarray(color, dtype=np.float64)
    return arr[..., 0], arr[..., 1], arr[..., 2]


def _unwrap(value: np.ndarray):
    """Return plain floats for scalar input, arrays otherwise."""
    if np.ndim(value) == 0:
        return float(value)
    return value


def blend_ratio(intensity: Union[float, np.ndarray]) -> np.ndarray:
    """Extrapolation factor min(50, p / (1 - p)); 50 when p >= 1."""
    p = np.asarray(intensity, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = p / (1.0 - p)
    return np.where(p >= 1.0, MAX_BLEND_RATIO, np.minimum(MAX_BLEND_RATIO, ratio))


def blend_penalties(observed: ColorLike, color: ColorLike,
                    intensity: Union[float, np.ndarray]) -> np.ndarray:
    """
    Vectorized canblend.

    Args:
        observed: (..., 3) observed colors
        color: (..., 3) candidate glyph colors, broadcast against observed
        intensity: (...) share of the candidate color in the mix (0-1)

    Returns:
        (...) array of penalties, 0 where a valid blend exists
    """
    observed = np.asarray(observed, dtype=np.float64)
    color = np.asarray(color, dtype=np.float64)
    m = blend_ratio(intensity)[..., np.newaxis]

    # The unknown second color implied by the blend
    other = observed + (observed - color) * m
    overshoot = np.maximum(-other, other - 255.0).max(axis=-1)
    return np.maximum(overshoot, 0.0)


def canblend(observed: ColorLike, color: ColorLike, intensity: float) -> float:
    """
    Test whether observed can be a mix of color and any valid second color.

    observed = intensity * color + (1 - intensity) * X must hold for some
    X in [0, 255]^3. The result is how far the best X lies outside that
    range on its worst channel.

    Args:
        observed: Observed (r, g, b), extra channels such as alpha ignored
        color: Candidate glyph color (r, g, b)
        intensity: Share of color in the mix (0-1)

    Returns:
        Gamut violation, 0.0 when a valid blend exists
    """
    return float(blend_penalties(np.asarray(observed)[..., :3], color, intensity))


def decompose3col(pixel: ColorLike, c1: ColorLike, c2: ColorLike, c3: ColorLike):
    """
    Solve pixel = x*c1 + y*c2 + z*c3 with Cramer's rule.

    Coplanar colors have a zero determinant; the result then contains
    NaN/Inf instead of raising.

    Returns:
        Tuple (x, y, z) of floats, or of arrays for array input
    """
    rp, gp, bp = _channels(pixel)
    r1, g1, b1 = _channels(c1)
    r2, g2, b2 = _channels(c2)
    r3, g3, b3 = _channels(c3)

    # Cofactors of the color matrix
    a = g2 * b3 - b2 * g3
    b = g3 * b1 - b3 * g1
    c = g1 * b2 - b1 * g2

    d = b2 * r3 - r2 * b3
    e = b3 * r1 - r3 * b1
    f = b1 * r2 - r1 * b2

    g = r2 * g3 - g2 * r3
    h = r3 * g1 - g3 * r1
    i = r1 * g2 - g1 * r2

    det = r1 * a + g1 * d + b1 * g

    with np.errstate(divide="ignore", invalid="ignore"):
        x = (a * rp + d * gp + g * bp) / det
        y = (b * rp + e * gp + h * bp) / det
        z = (c * rp + f * gp + i * bp) / det

    return _unwrap(x), _unwrap(y), _unwrap(z)


def decompose2col(pixel: ColorLike, c1: ColorLike, c2: ColorLike):
    """
    Decompose pixel into two known colors plus an orthogonal noise term.

    The third axis is the cross product of c1 and c2 scaled to length 255,
    so the noise weight is comparable with the other two.

    Returns:
        Tuple (x, y, noise): weights of c1 and c2 and the residual
    """
    c1 = np.asarray(c1, dtype=np.float64)
    c2 = np.asarray(c2, dtype=np.float64)
    c3 = np.cross(c1, c2)

    with np.errstate(divide="ignore", invalid="ignore"):
        c3 = c3 * (255.0 / np.linalg.norm(c3, axis=-1, keepdims=True))

    return decompose3col(pixel, c1, c2, c3)
