"""
Gradient noise field (improved Perlin noise) over a seeded permutation.
"""
import math
from typing import Callable, List


def _fade(t):
    return t * t * t * (t * (t * 6 - 15) + 10)


def _lerp(t, a, b):
    return a + t * (b - a)


def _grad(h, x, y, z):
    h &= 15
    u = x if h < 8 else y
    v = y if h < 4 else (x if h in (12, 14) else z)
    return (u if (h & 1) == 0 else -u) + (v if (h & 2) == 0 else -v)


class Noise:
    """A continuous noise field; the permutation comes from `shuffle`."""

    def __init__(self, shuffle: Callable[[List[int]], List[int]]):
        perm = list(shuffle(list(range(256))))
        self.p = perm + perm

    def noise(self, x: float, y: float = 0, z: float = 0) -> float:
        p = self.p
        X = math.floor(x) & 255
        Y = math.floor(y) & 255
        Z = math.floor(z) & 255
        x -= math.floor(x)
        y -= math.floor(y)
        z -= math.floor(z)
        u, v, w = _fade(x), _fade(y), _fade(z)

        A = p[X] + Y
        AA = p[A] + Z
        AB = p[A + 1] + Z
        B = p[X + 1] + Y
        BA = p[B] + Z
        BB = p[B + 1] + Z

        return _lerp(w,
            _lerp(v,
                _lerp(u, _grad(p[AA], x, y, z), _grad(p[BA], x - 1, y, z)),
                _lerp(u, _grad(p[AB], x, y - 1, z), _grad(p[BB], x - 1, y - 1, z))),
            _lerp(v,
                _lerp(u, _grad(p[AA + 1], x, y, z - 1), _grad(p[BA + 1], x - 1, y, z - 1)),
                _lerp(u, _grad(p[AB + 1], x, y - 1, z - 1), _grad(p[BB + 1], x - 1, y - 1, z - 1))))
