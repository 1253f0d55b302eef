"""Network flow optimization services."""

from .builder import MissingDataError, MissingValuePolicy, build_network_model
from .service import solve_network
from .simplex import SimplexResult, SimplexSolver

__all__ = [
    "build_network_model",
    "solve_network",
    "SimplexSolver",
    "SimplexResult",
    "MissingDataError",
    "MissingValuePolicy",
]
