from __future__ import annotations

from typing import Dict, Iterator, Tuple

import numpy as np

GROUND = 0
LOW = 1
EXCITED = 2
N_LEVELS = 3

LEVEL_INDEX: Dict[str, int] = {"ground": GROUND, "low": LOW, "excited": EXCITED}


class MomentumStateIndex:
    """Flat addressing of |n, k><n', k'| entries of the density matrix.

    Basis states |n, k> are enumerated level-major, with the momentum index
    shifted so that ``kmin`` maps to 0. The density matrix is stored row major
    in a single flat buffer of length ``n_states**2``.
    """

    def __init__(self, kmin: int, kmax: int, nint: int = N_LEVELS):
        if kmin > kmax:
            raise ValueError(f"kmin ({kmin}) greater than kmax ({kmax})")
        self.kmin = int(kmin)
        self.kmax = int(kmax)
        self.nint = int(nint)

    def __repr__(self) -> str:
        return f"MomentumStateIndex(kmin={self.kmin}, kmax={self.kmax}, nint={self.nint})"

    @property
    def n_momenta(self) -> int:
        return self.kmax - self.kmin + 1

    @property
    def n_states(self) -> int:
        return self.n_momenta * self.nint

    @property
    def n_entries(self) -> int:
        return self.n_states * self.n_states

    @property
    def momenta(self) -> range:
        return range(self.kmin, self.kmax + 1)

    def in_window(self, k: int) -> bool:
        return self.kmin <= k <= self.kmax

    def state_index(self, n: int, k: int) -> int:
        if not 0 <= n < self.nint or not self.in_window(k):
            raise IndexError(f"State (n={n}, k={k}) outside {self!r}")
        return (k - self.kmin) + self.n_momenta * n

    def state_coords(self, idx: int) -> Tuple[int, int]:
        if not 0 <= idx < self.n_states:
            raise IndexError(f"State index {idx} outside {self!r}")
        n, k_idx = divmod(idx, self.n_momenta)
        return n, k_idx + self.kmin

    def entry_index(self, nl: int, kl: int, nr: int, kr: int) -> int:
        return self.state_index(nr, kr) + self.n_states * self.state_index(nl, kl)

    def states(self) -> Iterator[Tuple[int, int]]:
        for n in range(self.nint):
            for k in self.momenta:
                yield n, k

    def zeros(self) -> np.ndarray:
        return np.zeros(self.n_entries, dtype=complex)

    def as_matrix(self, rho: np.ndarray) -> np.ndarray:
        """(n_states, n_states) view of a flat density matrix."""
        return np.asarray(rho).reshape(self.n_states, self.n_states)

    def as_array(self, rho: np.ndarray) -> np.ndarray:
        """(nint, n_momenta, nint, n_momenta) view, indexed [nl, kl - kmin, nr, kr - kmin]."""
        return np.asarray(rho).reshape(self.nint, self.n_momenta, self.nint, self.n_momenta)

    def populations(self, rho: np.ndarray) -> np.ndarray:
        """Diagonal entries as a (nint, n_momenta) array."""
        return np.diagonal(self.as_matrix(rho)).reshape(self.nint, self.n_momenta)

    def total_trace(self, rho: np.ndarray) -> complex:
        return complex(np.trace(self.as_matrix(rho)))

    def partial_trace_over_momentum(self, rho: np.ndarray, n: int) -> complex:
        return complex(self.populations(rho)[n].sum())

    def partial_trace_over_level(self, rho: np.ndarray, k: int) -> complex:
        if not self.in_window(k):
            raise IndexError(f"Momentum {k} outside {self!r}")
        return complex(self.populations(rho)[:, k - self.kmin].sum())

    def purity(self, rho: np.ndarray) -> complex:
        matrix = self.as_matrix(rho)
        return complex(np.sum(matrix * matrix.T))
