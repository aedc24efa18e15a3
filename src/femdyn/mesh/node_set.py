"""
Node Set
========

Immutable collection of node coordinates with geometric node selection.
"""

import numpy as np
from typing import Callable, Sequence

from ..exceptions import MeshError


class NodeSet:
    """
    Finite element nodes.

    Attributes:
        xyz: np.ndarray, shape (n_nodes, dim)
            Node coordinates; read-only
    """

    def __init__(self, xyz: np.ndarray):
        """
        Args:
            xyz: shape (n_nodes, dim) with dim in 1..3, or (n_nodes,) for 1D
        """
        xyz = np.array(xyz, dtype=np.float64)
        if xyz.ndim == 1:
            xyz = xyz.reshape(-1, 1)
        if xyz.ndim != 2 or xyz.shape[1] not in (1, 2, 3):
            raise MeshError(f"xyz must have shape (n_nodes, dim) with dim 1..3, "
                            f"got {xyz.shape}")
        if not np.all(np.isfinite(xyz)):
            raise MeshError("Node coordinates must be finite")
        xyz.flags.writeable = False
        self.xyz = xyz

    @property
    def n_nodes(self) -> int:
        """Number of nodes."""
        return self.xyz.shape[0]

    @property
    def dim(self) -> int:
        """Spatial dimension."""
        return self.xyz.shape[1]

    def __len__(self) -> int:
        return self.n_nodes

    def __repr__(self) -> str:
        return f"NodeSet(n_nodes={self.n_nodes}, dim={self.dim})"

    def bounding_box(self) -> np.ndarray:
        """
        Axis-aligned bounding box.

        Returns:
            box: [x_min, x_max, y_min, y_max, ...], length 2*dim
        """
        lo = self.xyz.min(axis=0)
        hi = self.xyz.max(axis=0)
        return np.column_stack([lo, hi]).ravel()

    def select_box(self, box: Sequence[float], inflate: float = 0.0) -> np.ndarray:
        """
        Select nodes inside an axis-aligned box.

        Infinite bounds are allowed, so that a plane x = 0 is
        [0, 0, -inf, inf, -inf, inf] with a small inflate.

        Args:
            box: [x_min, x_max, y_min, y_max, ...], length 2*dim
            inflate: tolerance added on every side

        Returns:
            node indices, sorted
        """
        box = np.asarray(box, dtype=np.float64).reshape(-1, 2)
        if box.shape[0] != self.dim:
            raise MeshError(f"Box must have {2 * self.dim} entries for a "
                            f"{self.dim}-D node set, got {box.size}")
        lo = box[:, 0] - inflate
        hi = box[:, 1] + inflate
        inside = np.all((self.xyz >= lo) & (self.xyz <= hi), axis=1)
        return np.flatnonzero(inside)

    def select_region(self, func: Callable[..., bool]) -> np.ndarray:
        """
        Select nodes for which a predicate of the coordinates holds.

        Args:
            func: function(x, y, ...) -> bool, one argument per coordinate

        Returns:
            node indices, sorted
        """
        return np.array([i for i, x in enumerate(self.xyz) if func(*x)], dtype=np.int64)

    def select_nearest(self, point: Sequence[float]) -> int:
        """Index of the node closest to a point."""
        point = np.asarray(point, dtype=np.float64).ravel()
        return int(np.argmin(np.linalg.norm(self.xyz - point, axis=1)))
