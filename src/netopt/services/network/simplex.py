"""Dense-tableau simplex solver."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from ...config import settings
from ...models.domain import SolverStatus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SimplexResult:
    solution: np.ndarray
    objective_value: float
    iterations: int
    status: SolverStatus


class SimplexSolver:
    """Solve ``max c.x subject to A.x <= b, x >= 0`` with a dense tableau.

    The initial basis is the slack basis at the origin, so every right-hand
    side must be non-negative. There is no phase one: a negative ``b`` is
    reported as infeasible without pivoting. The entering column is the most
    negative reduced cost with no anti-cycling rule, and the run is capped at
    ``max_iterations`` pivots.
    """

    def __init__(
        self,
        *,
        max_iterations: int | None = None,
        pivot_tolerance: float | None = None,
        basis_tolerance: float | None = None,
    ) -> None:
        self.max_iterations = settings.simplex_max_iterations if max_iterations is None else max_iterations
        self.pivot_tolerance = settings.simplex_pivot_tolerance if pivot_tolerance is None else pivot_tolerance
        self.basis_tolerance = settings.simplex_basis_tolerance if basis_tolerance is None else basis_tolerance

    def _build_tableau(self, c: np.ndarray, A: np.ndarray, b: np.ndarray) -> np.ndarray:
        m, n = A.shape
        tableau = np.zeros((m + 1, n + m + 1), dtype=float)
        tableau[:m, :n] = A
        tableau[:m, n : n + m] = np.eye(m)
        tableau[:m, -1] = b
        tableau[m, :n] = -c
        return tableau

    def _pivot(self, tableau: np.ndarray, row: int, col: int) -> None:
        tableau[row] /= tableau[row, col]
        for i in range(tableau.shape[0]):
            if i != row:
                factor = tableau[i, col]
                if factor != 0.0:
                    tableau[i] -= factor * tableau[row]

    def _extract(self, tableau: np.ndarray, basis: list[int], n: int) -> np.ndarray:
        """Read each basic decision variable off the right-hand side of its row.

        ``basis[row]`` is the column whose unit vector sits on ``row``; only
        that column takes the row's value, so identical columns never share it.
        Values within ``basis_tolerance`` of zero are reported as zero.
        """

        solution = np.zeros(n, dtype=float)
        for row, column in enumerate(basis):
            if column >= n:
                continue
            value = tableau[row, -1]
            solution[column] = 0.0 if abs(value) < self.basis_tolerance else value
        return solution

    def solve(self, c, A, b) -> SimplexResult:
        c = np.asarray(c, dtype=float)
        b = np.asarray(b, dtype=float)
        n = len(c)
        A = np.asarray(A, dtype=float).reshape(len(b), n)

        if np.any(b < 0):
            logger.warning("Right-hand side has negative entries; the origin is not a feasible basis.")
            return SimplexResult(
                solution=np.zeros(n), objective_value=0.0, iterations=0, status=SolverStatus.INFEASIBLE
            )

        if n == 0:
            return SimplexResult(solution=np.zeros(0), objective_value=0.0, iterations=0, status=SolverStatus.OPTIMAL)

        m = len(b)
        tableau = self._build_tableau(c, A, b)
        # Slack columns n..n+m-1 form the starting basis.
        basis = list(range(n, n + m))
        status = SolverStatus.ITERATION_CAP_REACHED
        iterations = 0

        while iterations < self.max_iterations:
            objective_row = tableau[m, : n + m]
            pivot_col = int(np.argmin(objective_row))
            if objective_row[pivot_col] >= 0:
                status = SolverStatus.OPTIMAL
                break

            column = tableau[:m, pivot_col]
            eligible = column > self.pivot_tolerance
            if not np.any(eligible):
                status = SolverStatus.UNBOUNDED
                break

            ratios = np.full(m, np.inf)
            ratios[eligible] = tableau[:m, -1][eligible] / column[eligible]
            pivot_row = int(np.argmin(ratios))

            self._pivot(tableau, pivot_row, pivot_col)
            basis[pivot_row] = pivot_col
            iterations += 1
        else:
            # A pivot on the final allowed iteration may still have reached optimality.
            if np.all(tableau[m, : n + m] >= 0):
                status = SolverStatus.OPTIMAL

        if status is SolverStatus.ITERATION_CAP_REACHED:
            logger.warning(f"Simplex stopped at the iteration cap ({self.max_iterations} pivots).")
        elif status is SolverStatus.UNBOUNDED:
            logger.warning(f"Simplex found an unbounded entering column after {iterations} pivots.")

        return SimplexResult(
            solution=self._extract(tableau, basis, n),
            objective_value=float(tableau[m, -1]),
            iterations=iterations,
            status=status,
        )
