"""
Nodal Field
===========

Vector field with one value per node and component, fixed/free
classification and equation numbering of the free degrees of freedom.

Equation numbers are assigned node-major, component-minor:
    (node 0, comp 0), (node 0, comp 1), ..., (node 1, comp 0), ...
skipping fixed DOFs. Fixed DOFs carry equation number -1.
"""

import contextlib
import numpy as np
from typing import Iterator, Optional, Sequence, Tuple, Union

from ..exceptions import FieldNumberingError, InvalidDOFIndex


class NodalField:
    """
    Degree-of-freedom field on a node set.

    Attributes:
        name: field name, e.g. 'displacement'
        values: np.ndarray, shape (n_nodes, dim)
            Current nodal values; fixed DOFs hold their prescribed values
        is_fixed: np.ndarray of bool, shape (n_nodes, dim)
        fixed_values: np.ndarray, shape (n_nodes, dim)
            Prescribed values, meaningful where is_fixed is True
        dofnums: np.ndarray of int, shape (n_nodes, dim)
            Equation numbers; -1 for fixed DOFs
        nfreedofs: number of free DOFs
    """

    def __init__(self, name: str, n_nodes: int, dim: int,
                 values: Optional[np.ndarray] = None):
        if n_nodes < 0 or dim < 1:
            raise InvalidDOFIndex(f"Field needs n_nodes >= 0 and dim >= 1, "
                                  f"got ({n_nodes}, {dim})")
        self.name = name
        if values is None:
            self.values = np.zeros((n_nodes, dim))
        else:
            self.values = np.array(values, dtype=np.float64).reshape(n_nodes, dim)
        self.is_fixed = np.zeros((n_nodes, dim), dtype=bool)
        self.fixed_values = np.zeros((n_nodes, dim))
        self.dofnums = np.full((n_nodes, dim), -1, dtype=np.int64)
        self.nfreedofs = 0
        self._numbered = False

    @property
    def n_nodes(self) -> int:
        """Number of nodes."""
        return self.values.shape[0]

    @property
    def dim(self) -> int:
        """Number of components per node."""
        return self.values.shape[1]

    @property
    def is_numbered(self) -> bool:
        """True when equation numbers are current."""
        return self._numbered

    def __repr__(self) -> str:
        state = f"nfreedofs={self.nfreedofs}" if self._numbered else "not numbered"
        return f"NodalField({self.name!r}, n_nodes={self.n_nodes}, dim={self.dim}, {state})"

    def _check_nodes(self, node_list) -> np.ndarray:
        nodes = np.atleast_1d(np.asarray(node_list, dtype=np.int64))
        if nodes.size and (nodes.min() < 0 or nodes.max() >= self.n_nodes):
            raise InvalidDOFIndex(f"Node index out of range for field {self.name!r} "
                                  f"with {self.n_nodes} nodes")
        return nodes

    def _check_components(self, component) -> np.ndarray:
        if component is None:
            return np.arange(self.dim)
        comps = np.atleast_1d(np.asarray(component, dtype=np.int64))
        if comps.size and (comps.min() < 0 or comps.max() >= self.dim):
            raise InvalidDOFIndex(f"Component {component} out of range for field "
                                  f"{self.name!r} of dimension {self.dim}")
        return comps

    def set_ebc(self, node_list: Sequence[int],
                component: Union[int, Sequence[int], None] = None,
                is_fixed: bool = True,
                value: Union[float, Sequence[float]] = 0.0) -> None:
        """
        Classify DOFs as fixed or free and set their prescribed values.

        Later calls override earlier ones for the same (node, component).
        Numbering is invalidated only if some fixed/free flag changes.

        Args:
            node_list: node indices
            component: component index or indices; None for all components
            is_fixed: True to fix, False to release
            value: prescribed value, scalar or one per node

        Raises:
            InvalidDOFIndex: on an out-of-range node or component
        """
        nodes = self._check_nodes(node_list)
        comps = self._check_components(component)
        if nodes.size == 0:
            return
        value = np.asarray(value, dtype=np.float64)
        if value.ndim == 1 and value.size == nodes.size:
            value = value[:, None]
        idx = np.ix_(nodes, comps)
        if np.any(self.is_fixed[idx] != is_fixed):
            self._numbered = False
        self.is_fixed[idx] = is_fixed
        self.fixed_values[idx] = np.broadcast_to(value, (nodes.size, comps.size)) if is_fixed else 0.0

    def apply_ebc(self) -> None:
        """Copy the prescribed values into the fixed slots of values."""
        self.values[self.is_fixed] = self.fixed_values[self.is_fixed]

    def number_dofs(self) -> int:
        """
        Assign equation numbers to the free DOFs.

        Deterministic and idempotent: the same classification always yields
        the same numbering.

        Returns:
            number of free DOFs
        """
        free = ~self.is_fixed.ravel()
        dofnums = np.full(free.size, -1, dtype=np.int64)
        dofnums[free] = np.arange(np.count_nonzero(free))
        self.dofnums = dofnums.reshape(self.is_fixed.shape)
        self.nfreedofs = int(np.count_nonzero(free))
        self._numbered = True
        return self.nfreedofs

    def _require_numbering(self) -> None:
        if not self._numbered:
            raise FieldNumberingError(f"Field {self.name!r} has no current equation "
                                      f"numbering; call number_dofs() first")

    def gather_sysvec(self) -> np.ndarray:
        """
        Free-DOF values as a flat vector ordered by equation number.

        Returns:
            vec: shape (nfreedofs,)
        """
        self._require_numbering()
        vec = np.zeros(self.nfreedofs)
        free = self.dofnums >= 0
        vec[self.dofnums[free]] = self.values[free]
        return vec

    def scatter_sysvec(self, vec: np.ndarray) -> None:
        """
        Write a free-DOF vector into the field.

        Fixed DOFs are set to their prescribed values.

        Args:
            vec: shape (nfreedofs,)

        Raises:
            InvalidDOFIndex: if the length does not match nfreedofs
        """
        self._require_numbering()
        vec = np.asarray(vec, dtype=np.float64).ravel()
        if vec.size != self.nfreedofs:
            raise InvalidDOFIndex(f"Vector of length {vec.size} does not match "
                                  f"{self.nfreedofs} free DOFs of field {self.name!r}")
        free = self.dofnums >= 0
        self.values[free] = vec[self.dofnums[free]]
        self.apply_ebc()

    def gather_dofnums(self, conn: np.ndarray) -> np.ndarray:
        """
        Element DOF maps, node-major, component-minor.

        Args:
            conn: connectivity, shape (n_elements, n_nodes_per_element)

        Returns:
            shape (n_elements, n_nodes_per_element*dim); -1 for fixed DOFs
        """
        self._require_numbering()
        conn = np.atleast_2d(conn)
        return self.dofnums[conn].reshape(conn.shape[0], -1)

    def gather_fixed_values(self, conn: np.ndarray) -> np.ndarray:
        """
        Element vectors of prescribed values, zero on free DOFs.

        Args:
            conn: connectivity, shape (n_elements, n_nodes_per_element)

        Returns:
            shape (n_elements, n_nodes_per_element*dim)
        """
        conn = np.atleast_2d(conn)
        fixed = np.where(self.is_fixed, self.fixed_values, 0.0)
        return fixed[conn].reshape(conn.shape[0], -1)

    def gather_values(self, conn: np.ndarray) -> np.ndarray:
        """Element vectors of current values, node-major."""
        conn = np.atleast_2d(conn)
        return self.values[conn].reshape(conn.shape[0], -1)

    def equation_to_dof(self, eq: int) -> Tuple[int, int]:
        """
        Reverse lookup of an equation number.

        Returns:
            (node, component)

        Raises:
            InvalidDOFIndex: if no free DOF has that equation number
        """
        self._require_numbering()
        if not 0 <= eq < self.nfreedofs:
            raise InvalidDOFIndex(f"Equation {eq} out of range [0, {self.nfreedofs})")
        node, comp = np.argwhere(self.dofnums == eq)[0]
        return int(node), int(comp)

    @contextlib.contextmanager
    def fixed_value_overlay(self, values: np.ndarray) -> Iterator['NodalField']:
        """
        Temporarily replace the prescribed values.

        The original fixed values are restored on exit, also on error.

        Args:
            values: shape (n_nodes, dim); only entries at fixed DOFs matter
        """
        saved = self.fixed_values.copy()
        try:
            self.fixed_values = np.array(values, dtype=np.float64).reshape(saved.shape)
            yield self
        finally:
            self.fixed_values = saved

    def copy(self, name: Optional[str] = None) -> 'NodalField':
        """
        Clone the field, including classification and numbering.

        Args:
            name: name of the new field (default: same name)
        """
        other = NodalField(name or self.name, self.n_nodes, self.dim, self.values)
        other.is_fixed = self.is_fixed.copy()
        other.fixed_values = self.fixed_values.copy()
        other.dofnums = self.dofnums.copy()
        other.nfreedofs = self.nfreedofs
        other._numbered = self._numbered
        return other
