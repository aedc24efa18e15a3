"""
Element Set
===========

Connectivity of a homogeneous group of elements, tagged with its element type.
"""

import numpy as np
from typing import Optional, Sequence, Union

from ..elements import ElementType, get_element_type
from ..exceptions import MeshError
from .node_set import NodeSet


class ElementSet:
    """
    Homogeneous element set.

    Attributes:
        etype: ElementType capability set of the elements
        conn: np.ndarray, shape (n_elements, n_nodes_per_element)
            Zero-based node indices
        label: optional name of the set
    """

    def __init__(self, element_type: Union[str, ElementType], conn: np.ndarray,
                 label: Optional[str] = None):
        self.etype = (get_element_type(element_type)
                      if isinstance(element_type, str) else element_type)
        conn = np.array(conn, dtype=np.int64)
        if conn.ndim == 1:
            conn = conn.reshape(-1, self.etype.n_nodes)
        if conn.ndim != 2 or conn.shape[1] != self.etype.n_nodes:
            raise MeshError(f"{self.etype.tag} connectivity needs "
                            f"{self.etype.n_nodes} nodes per element, got shape {conn.shape}")
        if conn.size and conn.min() < 0:
            raise MeshError("Connectivity contains negative node indices")
        self.conn = conn
        self.label = label

    @property
    def element_type(self) -> str:
        """Element-type tag."""
        return self.etype.tag

    @property
    def n_elements(self) -> int:
        """Number of elements."""
        return self.conn.shape[0]

    @property
    def n_nodes_per_element(self) -> int:
        """Nodes per element."""
        return self.conn.shape[1]

    @property
    def manifold_dim(self) -> int:
        """Dimension of the parametric domain."""
        return self.etype.manifold_dim

    def __len__(self) -> int:
        return self.n_elements

    def __repr__(self) -> str:
        return f"ElementSet({self.element_type!r}, n_elements={self.n_elements})"

    def validate(self, node_set: NodeSet) -> None:
        """
        Check that every node index refers to a node of the node set.

        Raises:
            MeshError: on out-of-range indices or repeated nodes in an element
        """
        if self.n_elements == 0:
            return
        if self.conn.max() >= node_set.n_nodes:
            bad = int(np.argmax(self.conn.max(axis=1) >= node_set.n_nodes))
            raise MeshError(f"Element {bad} of {self.element_type} set refers to node "
                            f"{int(self.conn[bad].max())}, but there are only "
                            f"{node_set.n_nodes} nodes")
        sorted_conn = np.sort(self.conn, axis=1)
        repeated = np.any(sorted_conn[:, 1:] == sorted_conn[:, :-1], axis=1)
        if np.any(repeated):
            raise MeshError(f"Element {int(np.argmax(repeated))} has repeated nodes")

    def connected_nodes(self) -> np.ndarray:
        """Sorted unique node indices referenced by the set."""
        return np.unique(self.conn)

    def subset(self, indices: Sequence[int]) -> 'ElementSet':
        """New element set with the selected elements."""
        return ElementSet(self.etype, self.conn[np.asarray(indices, dtype=np.int64)],
                          label=self.label)

    def cat(self, other: 'ElementSet') -> 'ElementSet':
        """Concatenate with another set of the same element type."""
        if other.element_type != self.element_type:
            raise MeshError(f"Cannot concatenate {self.element_type} and "
                            f"{other.element_type} element sets")
        return ElementSet(self.etype, np.vstack([self.conn, other.conn]),
                          label=self.label)

    def boundary(self) -> 'ElementSet':
        """
        Boundary of the element set.

        A face is on the boundary when exactly one element of the set owns it.
        Faces keep the orientation of their owning element and are listed in
        order of first appearance.

        Returns:
            ElementSet of the boundary element type
        """
        faces = self.etype.boundary_conn(self.conn)
        key = np.sort(faces, axis=1)
        _, first, counts = np.unique(key, axis=0, return_index=True,
                                     return_counts=True)
        keep = np.sort(first[counts == 1])
        return ElementSet(self.etype.boundary_type, faces[keep], label=self.label)

    def select_box(self, node_set: NodeSet, box: Sequence[float],
                   inflate: float = 0.0) -> np.ndarray:
        """
        Indices of elements whose nodes all lie inside a box.

        Args:
            node_set: node coordinates
            box: [x_min, x_max, y_min, y_max, ...]
            inflate: tolerance added on every side

        Returns:
            element indices, sorted
        """
        inside = np.zeros(node_set.n_nodes, dtype=bool)
        inside[node_set.select_box(box, inflate)] = True
        return np.flatnonzero(np.all(inside[self.conn], axis=1))
