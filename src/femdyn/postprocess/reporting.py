"""
Integration-Point Reporting
===========================

Lazily produced per-integration-point values and their reductions.
"""

import functools
import numpy as np
from typing import Iterable, Iterator, Sequence, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from ..fields import NodalField
    from ..mesh import NodeSet
    from ..physics import DeformationModel


def iter_integration_point_values(model: 'DeformationModel', geom: 'NodeSet',
                                  u: 'NodalField') -> Iterator[float]:
    """
    Strain energy density at every integration point of a region.

    Elements are visited in connectivity order, points in rule order.

    Args:
        model: deformation model of the region
        geom: node coordinates
        u: displacement field

    Yields:
        strain energy density per integration point
    """
    conn = model.fes.conn
    Ue = u.gather_values(conn)
    for e in range(conn.shape[0]):
        yield from model.strain_energy_density(geom.xyz[conn[e]], Ue[e])


def value_range(values: Iterable[float]) -> Tuple[float, float]:
    """
    Minimum and maximum of a sequence of values.

    Returns:
        (min, max); (inf, -inf) for an empty sequence
    """
    return functools.reduce(lambda acc, v: (min(acc[0], v), max(acc[1], v)),
                            values, (np.inf, -np.inf))


def strain_energy_range(models: Sequence['DeformationModel'], geom: 'NodeSet',
                        u: 'NodalField') -> Tuple[float, float]:
    """Range of the strain energy density over all regions."""
    return value_range(v for model in models
                       for v in iter_integration_point_values(model, geom, u))
