"""
Organizational Analysis Kernel — State Construction
"""

from .domain_types import AnalysisConstants, ModelState


def create_initial_state(constants: AnalysisConstants | None = None) -> ModelState:
    """Create a fresh, empty ModelState with the given constants."""
    return ModelState(constants=constants or AnalysisConstants())
