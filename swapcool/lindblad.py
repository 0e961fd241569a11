from __future__ import annotations

import numpy as np

from .operators import EXCITED, GROUND, LOW, MomentumStateIndex
from .params import PhysicalParameters


def decay_term(
    rho: np.ndarray,
    index: MomentumStateIndex,
    params: PhysicalParameters,
    nl: int,
    kl: int,
    nr: int,
    kr: int,
) -> complex:
    """Spontaneous-decay part of d<nl,kl|rho|nr,kr>/d(gamma t)."""

    def at(n1, k1, n2, k2):
        return rho[index.entry_index(n1, k1, n2, k2)]

    if nl == nr:
        if nl == GROUND:
            return (1 - params.branching_ratio) * at(EXCITED, kl, EXCITED, kr)
        if nl == LOW:
            # Approximate anisotropic dipole radiation pattern
            p = params.stationary_decay_probability
            diprad = p * at(EXCITED, kl, EXCITED, kr)
            if kl - 1 >= index.kmin and kr - 1 >= index.kmin:
                diprad += (1 - p) / 2 * at(EXCITED, kl - 1, EXCITED, kr - 1)
            if kl + 1 <= index.kmax and kr + 1 <= index.kmax:
                diprad += (1 - p) / 2 * at(EXCITED, kl + 1, EXCITED, kr + 1)
            return params.branching_ratio * diprad
        # Double decay of coherences within the excited state
        return -at(EXCITED, kl, EXCITED, kr)
    if nl == EXCITED or nr == EXCITED:
        return -0.5 * at(nl, kl, nr, kr)
    return 0j


def dissipator(
    rho: np.ndarray,
    index: MomentumStateIndex,
    params: PhysicalParameters,
) -> np.ndarray:
    """``decay_term`` for every entry at once, returned as a flat array."""
    r = index.as_array(rho)
    out = np.zeros_like(r, dtype=complex)
    excited = r[EXCITED, :, EXCITED, :]

    out[GROUND, :, GROUND, :] = (1 - params.branching_ratio) * excited

    p = params.stationary_decay_probability
    diprad = p * excited
    diprad[1:, 1:] += (1 - p) / 2 * excited[:-1, :-1]
    diprad[:-1, :-1] += (1 - p) / 2 * excited[1:, 1:]
    out[LOW, :, LOW, :] = params.branching_ratio * diprad

    out[EXCITED, :, EXCITED, :] = -excited

    for n in (GROUND, LOW):
        out[n, :, EXCITED, :] = -0.5 * r[n, :, EXCITED, :]
        out[EXCITED, :, n, :] = -0.5 * r[EXCITED, :, n, :]

    return out.reshape(-1)
