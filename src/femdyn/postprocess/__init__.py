"""
Postprocessing Module
=====================

Energy tracking, integration-point reductions and history plots.
"""

from .energy_tracking import EnergyRecord, EnergyTracker
from .reporting import iter_integration_point_values, value_range, strain_energy_range
from .visualization import plot_energy_history, plot_displacement_history

__all__ = [
    "EnergyRecord",
    "EnergyTracker",
    "iter_integration_point_values",
    "value_range",
    "strain_energy_range",
    "plot_energy_history",
    "plot_displacement_history",
]
