"""
basis.py

Evaluation of the Hagedorn basis functions
:math:`\\phi_k[\\Pi](x)`.

The ground state is

.. math::

   \\phi_0(x) = (\\pi\\varepsilon^2)^{-D/4} (\\det Q)^{-1/2}
   \\exp\\left[ \\frac{i}{2\\varepsilon^2} (x-q)^T P Q^{-1} (x-q)
   + \\frac{i}{\\varepsilon^2} p^T (x-q) \\right]

and the excited states follow from the three-term recursion

.. math::

   \\phi_{k+e_d} = \\frac{1}{\\sqrt{k_d+1}} \\left(
   \\frac{\\sqrt{2}}{\\varepsilon} \\left[Q^{-1}(x-q)\\right]_d \\phi_k
   - \\sum_j \\left[Q^{-1}\\bar{Q}\\right]_{dj} \\sqrt{k_j} \\phi_{k-e_j} \\right).

"""

import numpy as np

from .errors import DimensionMismatchError
from .shapes import NOT_FOUND

__all__ = ['evaluate_basis', 'ground_state', 'transform_nodes']


def _check_nodes(nodes, D):
    nodes = np.asarray(nodes)
    if nodes.ndim == 1 and D == 1:
        nodes = nodes.reshape((1,-1))
    if nodes.ndim != 2 or nodes.shape[0] != D:
        raise DimensionMismatchError(f"nodes must have shape ({D:d}, N)")
    return nodes

def ground_state(parameters, nodes, eps):
    """
    Evaluate :math:`\\phi_0` (without the phase
    :math:`e^{iS/\\varepsilon^2}`).

    Parameters
    ----------
    parameters : ParameterSet
        The Gaussian parameters.
    nodes : (`D`, `N`) array_like
        The evaluation points.
    eps : float
        The semiclassical scaling parameter.

    Returns
    -------
    (`N`,) ndarray
        The complex values.

    """

    D = parameters.D
    nodes = _check_nodes(nodes, D)

    Q,P = parameters.Q, parameters.P
    df = nodes - parameters.q.reshape((D,1))  # (D,N)
    Qdf = np.linalg.solve(Q, df)              # Q^-1 (x - q)

    arg = 0.5j / eps**2 * np.sum(df * (P @ Qdf), axis = 0) + 1j / eps**2 * (parameters.p @ df)
    norm = (np.pi * eps**2) ** (-0.25 * D) / np.sqrt(np.linalg.det(Q))

    return norm * np.exp(arg)

def evaluate_basis(parameters, shape, nodes, eps):
    """
    Evaluate all basis functions of a shape.

    Parameters
    ----------
    parameters : ParameterSet
        The Gaussian parameters.
    shape : ShapeEnum
        The basis shape.
    nodes : (`D`, `N`) array_like
        The evaluation points, in physical space.
    eps : float
        The semiclassical scaling parameter.

    Returns
    -------
    (``len(shape)``, `N`) ndarray
        The basis values. Row `i` holds :math:`\\phi_k`
        for ``k = shape.multi_index_at(i)``.

    Notes
    -----
    The lexicographic order of `shape` places every
    backward neighbour :math:`k - e_j` before :math:`k`, so the
    recursion is a single forward pass. Each function is
    reached along an axis whose predecessor is in `shape`,
    preferring one whose own predecessors are all present.
    Neighbours outside of `shape` contribute zero, and a
    function with no predecessor in `shape` is zero.

    """

    D = parameters.D
    if shape.D != D:
        raise DimensionMismatchError("shape and parameters have different dimensions")
    nodes = _check_nodes(nodes, D)
    N = nodes.shape[1]

    Q = parameters.Q
    Qinv = np.linalg.inv(Q)
    QQ = Qinv @ Q.conj()

    df = nodes - parameters.q.reshape((D,1))
    Qdf = Qinv @ df

    phi = np.zeros((shape.n_entries, N), dtype = np.complex128)
    if shape.n_entries == 0:
        return phi

    k = shape.indices
    bwd = shape.backward_table
    sqrtk = np.sqrt(k)

    i0 = shape.index_of((0,) * D)
    if i0 != NOT_FOUND:
        phi[i0] = ground_state(parameters, nodes, eps)

    for i in range(shape.n_entries):
        if i == i0:
            continue
        d = _step_axis(k, bwd, i)
        if d is None:
            continue # Not reachable; leave as zero
        #
        # Step from the predecessor k - e_d
        j = bwd[i,d]
        acc = np.sqrt(2.0) / eps * Qdf[d] * phi[j]
        for l in range(D):
            b = bwd[j,l]
            if b != NOT_FOUND:
                acc -= QQ[d,l] * sqrtk[j,l] * phi[b]
        phi[i] = acc / sqrtk[i,d]

    return phi

def _step_axis(k, bwd, i):
    """
    Choose the recursion axis for the multi-index at
    position `i`. An axis whose predecessor is in the shape
    and has all of its own backward neighbours is preferred.
    Otherwise, the first axis with a predecessor is used.
    Returns None if no predecessor is in the shape.
    """
    axes = [d for d in np.flatnonzero(k[i]) if bwd[i,d] != NOT_FOUND]
    if len(axes) == 0:
        return None
    for d in axes:
        j = bwd[i,d]
        if all(bwd[j,l] != NOT_FOUND for l in np.flatnonzero(k[j])):
            return int(d)
    return int(axes[0])

def transform_nodes(q0, Qs, eps, nodes):
    """
    Map quadrature nodes :math:`y` to physical space,
    :math:`x = q_0 + \\varepsilon Q_s y`.

    Parameters
    ----------
    q0 : (`D`,) ndarray
        The centre.
    Qs : (`D`, `D`) ndarray
        The transformation matrix.
    eps : float
        The semiclassical scaling parameter.
    nodes : (`D`, `N`) ndarray
        The quadrature nodes.

    Returns
    -------
    (`D`, `N`) ndarray

    """
    D = len(q0)
    nodes = _check_nodes(nodes, D)
    return np.reshape(q0, (D,1)) + eps * (Qs @ nodes)
