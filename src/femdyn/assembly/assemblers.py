"""
System Assemblers
=================

Scatter-add accumulators for global matrices and vectors.

Element contributions arrive with their element DOF map (equation numbers,
-1 for fixed DOFs). Rows and columns of fixed DOFs are dropped. Triplets are
kept in arrival order and summed only when the matrix is built, so a fixed
element traversal order gives bit-for-bit reproducible results.
"""

import numpy as np
import scipy.sparse as sp


class SparseSystemMatrixAssembler:
    """
    Accumulate a global sparse matrix from element matrices in COO form.

    Args:
        n: number of free DOFs (size of the square matrix)
    """

    def __init__(self, n: int):
        self.n = n
        self._rows = []
        self._cols = []
        self._vals = []

    def assemble(self, mat: np.ndarray, dofnums: np.ndarray) -> None:
        """
        Add one element matrix.

        Args:
            mat: element matrix, shape (m, m)
            dofnums: element DOF map, shape (m,); -1 entries are dropped
        """
        dofnums = np.asarray(dofnums, dtype=np.int64).ravel()
        keep = dofnums >= 0
        if not np.any(keep):
            return
        d = dofnums[keep]
        rows, cols = np.meshgrid(d, d, indexing='ij')
        self._rows.append(rows.ravel())
        self._cols.append(cols.ravel())
        self._vals.append(np.asarray(mat)[np.ix_(keep, keep)].ravel())

    def make_matrix(self) -> sp.csr_matrix:
        """Build the CSR matrix; duplicate entries are summed."""
        if not self._vals:
            return sp.csr_matrix((self.n, self.n))
        rows = np.concatenate(self._rows)
        cols = np.concatenate(self._cols)
        vals = np.concatenate(self._vals)
        return sp.coo_matrix((vals, (rows, cols)), shape=(self.n, self.n)).tocsr()


class DiagonalSystemMatrixAssembler:
    """
    Accumulate a global diagonal (lumped) matrix from element diagonals.

    Args:
        n: number of free DOFs
    """

    def __init__(self, n: int):
        self.n = n
        self.diagonal = np.zeros(n)

    def assemble(self, diag: np.ndarray, dofnums: np.ndarray) -> None:
        """
        Add one element diagonal.

        Args:
            diag: element diagonal, shape (m,)
            dofnums: element DOF map, shape (m,); -1 entries are dropped
        """
        dofnums = np.asarray(dofnums, dtype=np.int64).ravel()
        keep = dofnums >= 0
        np.add.at(self.diagonal, dofnums[keep], np.asarray(diag).ravel()[keep])

    def make_matrix(self) -> sp.csr_matrix:
        """Build the diagonal matrix in CSR format."""
        return sp.diags(self.diagonal, format='csr')


class SystemVectorAssembler:
    """
    Accumulate a global vector from element vectors.

    Args:
        n: number of free DOFs
    """

    def __init__(self, n: int):
        self.n = n
        self.vector = np.zeros(n)

    def assemble(self, vec: np.ndarray, dofnums: np.ndarray) -> None:
        """Add one element vector; -1 entries of the DOF map are dropped."""
        dofnums = np.asarray(dofnums, dtype=np.int64).ravel()
        keep = dofnums >= 0
        np.add.at(self.vector, dofnums[keep], np.asarray(vec).ravel()[keep])

    def make_vector(self) -> np.ndarray:
        """Return the assembled vector."""
        return self.vector.copy()
