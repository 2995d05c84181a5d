"""
Statistical sampling primitives built on a uniform source.

Every sampler consumes uniforms from the source in a fixed order so that a
seeded source reproduces the same stream of samples.
"""

from __future__ import annotations

import math

from ..core.rng import UniformSource

_MIN_UNIFORM = 1e-10


def sample_uniform(rng: UniformSource, low: float, high: float) -> float:
    return rng.next_range(low, high)


def sample_normal_standard(rng: UniformSource) -> float:
    """
    Box-Muller transform, cosine branch only.

    Draws two uniforms (u1 then u2); u1 is floored at 1e-10 so the logarithm stays finite.
    """
    u1 = rng.next_float()
    u2 = rng.next_float()
    if u1 < _MIN_UNIFORM:
        u1 = _MIN_UNIFORM
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


def sample_normal(rng: UniformSource, mean: float, std: float) -> float:
    return mean + std * sample_normal_standard(rng)


def sample_gamma(rng: UniformSource, k: float, theta: float) -> float:
    """
    Marsaglia-Tsang rejection sampler for Gamma(shape=k, scale=theta).

    Shapes below one are boosted to k + 1 and scaled back by u ** (1 / k).
    The rejection loop has no iteration cap.
    """
    if k < 1.0:
        boosted = sample_gamma(rng, k + 1.0, theta)
        return boosted * rng.next_float() ** (1.0 / k)

    d = k - 1.0 / 3.0
    c = 1.0 / math.sqrt(9.0 * d)
    while True:
        x = sample_normal_standard(rng)
        v_term = 1.0 + c * x
        if v_term <= 0.0:
            continue
        v = v_term * v_term * v_term
        u = rng.next_float()
        x_sq = x * x
        if u < 1.0 - 0.0331 * x_sq * x_sq:
            return d * v * theta
        # log(0) is -inf, which always accepts.
        if u <= 0.0 or math.log(u) < 0.5 * x_sq + d * (1.0 - v + math.log(v)):
            return d * v * theta
