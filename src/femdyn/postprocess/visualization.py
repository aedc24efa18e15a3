"""
Visualization
=============

Plotting functions for energy and displacement histories.
"""

import matplotlib.pyplot as plt
import numpy as np
from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .energy_tracking import EnergyTracker


def plot_energy_history(tracker: 'EnergyTracker',
                        ax: Optional[plt.Axes] = None,
                        normalize: bool = False,
                        **kwargs) -> plt.Axes:
    """
    Plot kinetic, strain and total energy vs time.

    Args:
        tracker: EnergyTracker with records
        ax: matplotlib axes (created if None)
        normalize: whether to normalize by maximum total energy
        **kwargs: passed to plot

    Returns:
        ax: matplotlib axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 6))

    arrays = tracker.get_arrays()
    kinetic, strain, total = arrays['kinetic'], arrays['strain'], arrays['total']

    if normalize and total.size and np.max(total) > 0:
        scale = np.max(total)
        kinetic = kinetic / scale
        strain = strain / scale
        total = total / scale

    ax.plot(arrays['time'], kinetic, 'r-', label='Kinetic energy', **kwargs)
    ax.plot(arrays['time'], strain, 'b-', label='Strain energy', **kwargs)
    ax.plot(arrays['time'], total, 'k--', label='Total', **kwargs)

    ax.set_xlabel('Time')
    ax.set_ylabel('Energy (normalized)' if normalize else 'Energy')
    ax.legend()
    ax.grid(True, alpha=0.3)

    return ax


def plot_displacement_history(times: Sequence[float], values: Sequence[float],
                              ax: Optional[plt.Axes] = None,
                              label: str = 'Displacement',
                              **kwargs) -> plt.Axes:
    """
    Plot a displacement history, e.g. of one node and component.

    Args:
        times: sample times
        values: displacement at the sample times
        ax: matplotlib axes (created if None)
        label: legend label
        **kwargs: passed to plot

    Returns:
        ax: matplotlib axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 6))

    ax.plot(np.asarray(times), np.asarray(values), label=label, **kwargs)
    ax.set_xlabel('Time')
    ax.set_ylabel('Displacement')
    ax.legend()
    ax.grid(True, alpha=0.3)

    return ax
