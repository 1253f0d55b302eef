"""Linear programming backends for the network flow solver."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import numpy as np
from ortools.linear_solver import pywraplp

from ...models.domain import SolverStatus
from .simplex import SimplexResult, SimplexSolver


class LPBackend(ABC):
    """Contract for solvers of ``max c.x subject to A.x <= b, x >= 0``."""

    name: str

    @abstractmethod
    def solve(self, c: np.ndarray, A: np.ndarray, b: np.ndarray) -> SimplexResult:
        raise NotImplementedError


class SimplexBackend(LPBackend):
    name = "simplex"

    def __init__(self, **kwargs: Any) -> None:
        self.solver = SimplexSolver(**kwargs)

    def solve(self, c: np.ndarray, A: np.ndarray, b: np.ndarray) -> SimplexResult:
        return self.solver.solve(c, A, b)


class GlopBackend(LPBackend):
    """Solve the same program with OR-Tools' GLOP linear solver."""

    name = "glop"

    _STATUS_MAP = {
        pywraplp.Solver.OPTIMAL: SolverStatus.OPTIMAL,
        pywraplp.Solver.FEASIBLE: SolverStatus.ITERATION_CAP_REACHED,
        pywraplp.Solver.UNBOUNDED: SolverStatus.UNBOUNDED,
        pywraplp.Solver.INFEASIBLE: SolverStatus.INFEASIBLE,
    }

    def solve(self, c: np.ndarray, A: np.ndarray, b: np.ndarray) -> SimplexResult:
        c = np.asarray(c, dtype=float)
        b = np.asarray(b, dtype=float)
        A = np.asarray(A, dtype=float).reshape(len(b), len(c))

        solver = pywraplp.Solver.CreateSolver("GLOP")
        if solver is None:
            raise RuntimeError("OR-Tools GLOP solver is unavailable in this build.")

        variables = [solver.NumVar(0.0, solver.infinity(), f"x{j}") for j in range(len(c))]
        for i, rhs in enumerate(b):
            constraint = solver.Constraint(-solver.infinity(), float(rhs))
            for j in np.flatnonzero(A[i]):
                constraint.SetCoefficient(variables[j], float(A[i, j]))

        objective = solver.Objective()
        for j, coefficient in enumerate(c):
            objective.SetCoefficient(variables[j], float(coefficient))
        objective.SetMaximization()

        result_status = solver.Solve()
        status = self._STATUS_MAP.get(result_status)
        if status is None:
            raise RuntimeError(f"GLOP returned an unexpected status code {result_status}.")

        if status in (SolverStatus.OPTIMAL, SolverStatus.ITERATION_CAP_REACHED):
            solution = np.array([variable.solution_value() for variable in variables], dtype=float)
            objective_value = float(objective.Value())
        else:
            logging.warning(f"GLOP finished with status '{status.value}'.")
            solution = np.zeros(len(c))
            objective_value = 0.0

        return SimplexResult(
            solution=solution,
            objective_value=objective_value,
            iterations=int(solver.iterations()),
            status=status,
        )


def get_backend(name: str, **kwargs: Any) -> LPBackend:
    match name:
        case "simplex":
            simplex_kwargs = {
                k: v
                for k, v in kwargs.items()
                if k in {"max_iterations", "pivot_tolerance", "basis_tolerance"}
            }
            return SimplexBackend(**simplex_kwargs)
        case "glop":
            return GlopBackend()
        case _:
            raise ValueError(f"Unknown LP backend '{name}'.")
