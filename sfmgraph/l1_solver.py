"""ADMM solver for ``min_x || A x - b ||_1``."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import scipy.linalg
import scipy.sparse
import scipy.sparse.linalg


@dataclass
class L1SolverOptions:
    max_num_iterations: int = 1000
    # Augmented Lagrangian parameter.
    rho: float = 1.0
    # Over-relaxation parameter, typically between 1.0 and 1.8.
    alpha: float = 1.0
    absolute_tolerance: float = 1e-4
    relative_tolerance: float = 1e-2


def _shrinkage(vec: np.ndarray, kappa: float) -> np.ndarray:
    return np.maximum(0.0, vec - kappa) - np.maximum(0.0, -vec - kappa)


class L1Solver:
    """L1 regression solved by ADMM on a fixed dense or sparse matrix ``A``."""

    def __init__(self, options: L1SolverOptions, matrix) -> None:
        self.options = options
        if scipy.sparse.issparse(matrix):
            self._a = scipy.sparse.csr_matrix(matrix, dtype=float)
            normal = scipy.sparse.csc_matrix(self._a.T @ self._a)
            try:
                lu = scipy.sparse.linalg.splu(normal)
            except RuntimeError as exc:
                raise np.linalg.LinAlgError(
                    "could not factorise the normal equations"
                ) from exc
            self._solve_normal = lu.solve
        else:
            self._a = np.asarray(matrix, dtype=float)
            normal = self._a.T @ self._a
            try:
                factor = scipy.linalg.cho_factor(normal)
            except np.linalg.LinAlgError as exc:
                raise np.linalg.LinAlgError(
                    "could not factorise the normal equations"
                ) from exc
            self._solve_normal = lambda rhs: scipy.linalg.cho_solve(factor, rhs)

    def _at(self, vec: np.ndarray) -> np.ndarray:
        return np.asarray(self._a.T @ vec, dtype=float).ravel()

    def _ax(self, vec: np.ndarray) -> np.ndarray:
        return np.asarray(self._a @ vec, dtype=float).ravel()

    def solve(self, rhs, initial=None) -> np.ndarray:
        """Return ``x`` approximately minimising ``|| A x - rhs ||_1``."""
        opts = self.options
        rows, cols = self._a.shape
        b = np.asarray(rhs, dtype=float).ravel()
        x = np.zeros(cols) if initial is None else np.array(initial, dtype=float)

        z = np.zeros(rows)
        u = np.zeros(rows)
        rhs_norm = float(np.linalg.norm(b))
        primal_abs_eps = math.sqrt(rows) * opts.absolute_tolerance
        dual_abs_eps = math.sqrt(cols) * opts.absolute_tolerance

        for _ in range(opts.max_num_iterations):
            x = np.asarray(self._solve_normal(self._at(b + z - u)), dtype=float)
            if not np.all(np.isfinite(x)):
                raise np.linalg.LinAlgError(
                    "L1 minimisation failed: the linear system could not be solved"
                )

            a_times_x = self._ax(x)
            ax_hat = opts.alpha * a_times_x + (1.0 - opts.alpha) * (z + b)

            z_old = z
            z = _shrinkage(ax_hat - b + u, 1.0 / opts.rho)
            u = u + ax_hat - z - b

            r_norm = np.linalg.norm(a_times_x - z - b)
            s_norm = np.linalg.norm(-opts.rho * self._at(z - z_old))
            max_norm = max(np.linalg.norm(a_times_x), np.linalg.norm(z), rhs_norm)
            primal_eps = primal_abs_eps + opts.relative_tolerance * max_norm
            dual_eps = dual_abs_eps + opts.relative_tolerance * np.linalg.norm(
                opts.rho * self._at(u)
            )
            if r_norm < primal_eps and s_norm < dual_eps:
                break
        return x