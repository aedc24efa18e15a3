"""
Global Assembly
===============

Assembly of the global stiffness, lumped mass and Rayleigh damping
matrices, and of the load due to nonzero prescribed displacements.

All operators are expressed in the free-DOF numbering of the displacement
field:

    K = Σ_e A_e^T K_e A_e
    M = Σ_e A_e^T diag(m_e) A_e
    C = α K + β M
"""

import logging
import time
import numpy as np
import scipy.sparse as sp
from typing import Sequence, TYPE_CHECKING

from .assemblers import (SparseSystemMatrixAssembler, DiagonalSystemMatrixAssembler,
                         SystemVectorAssembler)

if TYPE_CHECKING:
    from ..fields import NodalField
    from ..mesh import NodeSet
    from ..physics import DeformationModel

logger = logging.getLogger(__name__)


def assemble_stiffness(models: Sequence['DeformationModel'], geom: 'NodeSet',
                       u: 'NodalField') -> sp.csr_matrix:
    """
    Assemble the global stiffness matrix over all regions.

    Args:
        models: one DeformationModel per region
        geom: node coordinates
        u: numbered displacement field

    Returns:
        K: shape (nfreedofs, nfreedofs)
    """
    t0 = time.perf_counter()
    assembler = SparseSystemMatrixAssembler(u.nfreedofs)
    for model in models:
        conn = model.fes.conn
        dofnums = u.gather_dofnums(conn)
        for e in range(conn.shape[0]):
            assembler.assemble(model.local_stiffness(geom.xyz[conn[e]]), dofnums[e])
    K = assembler.make_matrix()
    logger.info("Assembled stiffness: %d x %d, nnz=%d (%.3f s)",
                K.shape[0], K.shape[1], K.nnz, time.perf_counter() - t0)
    return K


def assemble_mass(models: Sequence['DeformationModel'], geom: 'NodeSet',
                  u: 'NodalField') -> sp.csr_matrix:
    """
    Assemble the global lumped (diagonal) mass matrix over all regions.

    Args:
        models: one DeformationModel per region
        geom: node coordinates
        u: numbered displacement field

    Returns:
        M: diagonal, shape (nfreedofs, nfreedofs)
    """
    assembler = DiagonalSystemMatrixAssembler(u.nfreedofs)
    for model in models:
        conn = model.fes.conn
        dofnums = u.gather_dofnums(conn)
        for e in range(conn.shape[0]):
            assembler.assemble(model.local_mass(geom.xyz[conn[e]]), dofnums[e])
    M = assembler.make_matrix()
    logger.info("Assembled lumped mass: %d DOFs, total %.6g",
                M.shape[0], assembler.diagonal.sum())
    return M


def rayleigh_damping(K: sp.spmatrix, M: sp.spmatrix, alpha: float,
                     beta: float) -> sp.csr_matrix:
    """
    Rayleigh damping matrix C = alpha*K + beta*M.

    Args:
        K: stiffness matrix
        M: mass matrix
        alpha: stiffness-proportional coefficient
        beta: mass-proportional coefficient

    Returns:
        C: CSR matrix; all-zero when both coefficients vanish
    """
    if alpha == 0.0 and beta == 0.0:
        return sp.csr_matrix(K.shape)
    return sp.csr_matrix(alpha * K + beta * M)


def nonzero_ebc_load(models: Sequence['DeformationModel'], geom: 'NodeSet',
                     u: 'NodalField') -> np.ndarray:
    """
    Load on the free DOFs due to nonzero prescribed displacements.

    F = -Σ_e A_e^T K_e u_f,e

    Only elements with at least one nonzero prescribed value are visited.

    Args:
        models: one DeformationModel per region
        geom: node coordinates
        u: numbered displacement field; fixed_values hold the prescribed values

    Returns:
        F: shape (nfreedofs,)
    """
    assembler = SystemVectorAssembler(u.nfreedofs)
    for model in models:
        conn = model.fes.conn
        uf = u.gather_fixed_values(conn)
        active = np.flatnonzero(np.any(uf != 0.0, axis=1))
        if active.size == 0:
            continue
        dofnums = u.gather_dofnums(conn)
        for e in active:
            Ke = model.local_stiffness(geom.xyz[conn[e]])
            assembler.assemble(-Ke @ uf[e], dofnums[e])
    return assembler.make_vector()
