"""
quadrature.py

Gauss-Hermite quadrature rules and their
direct (tensor) products.

A :class:`QuadratureRule` approximates

.. math::

   \\int d\\vec{y}\\, e^{-|\\vec{y}|^2} f(\\vec{y}) \\approx \\sum_{k} w_k f(\\vec{y}_k)

"""

import warnings

import numpy as np
import scipy.special

from .errors import InvalidQuadratureOrderError

__all__ = ['QuadratureRule', 'GaussHermiteQR', 'nodes_and_weights_1d',
           'tensor_product']


def nodes_and_weights_1d(order):
    """
    One-dimensional Gauss-Hermite nodes and weights.

    Parameters
    ----------
    order : int
        The number of nodes, :math:`m`. The rule is exact for
        polynomials of degree :math:`\\leq 2m - 1` times
        the kernel :math:`e^{-x^2}`.

    Returns
    -------
    x : (`order`,) ndarray
        The nodes, in ascending order.
    w : (`order`,) ndarray
        The weights. These sum to :math:`\\sqrt{\\pi}`.

    """

    if isinstance(order, bool) or not isinstance(order, (int, np.integer)):
        raise InvalidQuadratureOrderError("order must be an integer")
    if order < 1:
        raise InvalidQuadratureOrderError("order must be >= 1")

    x,w = scipy.special.roots_hermite(int(order))

    return x, w


class QuadratureRule:
    """
    A (possibly multi-dimensional) quadrature rule
    with the Gaussian kernel :math:`e^{-|y|^2}`.

    Attributes
    ----------
    D : int
        The number of dimensions.
    number_nodes : int
        The number of nodes, :math:`N`.
    nodes : (`D`, `N`) ndarray
        The nodes.
    weights : (`N`,) ndarray
        The weights.
    order : tuple of int
        The 1-D order of each axis.
    norm : float
        The sum of the exact weights, :math:`\\pi^{D/2}`.

    """

    def __init__(self, nodes, weights, order, norm):

        nodes = np.array(nodes, dtype = np.float64)
        if nodes.ndim == 1:
            nodes = nodes.reshape((1,-1))
        weights = np.array(weights, dtype = np.float64)

        if nodes.ndim != 2:
            raise ValueError("nodes must be 1-d or 2-d")
        if weights.shape != (nodes.shape[1],):
            raise ValueError("weights is the wrong size!")
        if len(order) != nodes.shape[0]:
            raise ValueError("order must have one entry per dimension")

        nodes.flags.writeable = False
        weights.flags.writeable = False

        self.D = nodes.shape[0]
        self.number_nodes = nodes.shape[1]
        self.nodes = nodes
        self.weights = weights
        self.order = tuple(order)
        self.norm = norm

        return

    def degree(self):
        """
        The per-axis polynomial degree integrated exactly.
        """
        return tuple(2*m - 1 for m in self.order)

    def scaled_weights(self):
        """
        The weights with the kernel removed, :math:`w_k e^{|y_k|^2}`.

        These integrate :math:`\\int d\\vec{y} f(\\vec{y})` for
        functions :math:`f` that already contain a
        Gaussian envelope.

        Returns
        -------
        (`N`,) ndarray

        """

        y2 = np.sum(self.nodes**2, axis = 0)

        # Evaluate in log space. Very small weights
        # would otherwise lose the exp(y**2) factor to
        # underflow.
        with np.errstate(divide = 'ignore'):
            logw = np.log(self.weights)
        if not np.all(np.isfinite(logw)):
            warnings.warn("Some quadrature weights underflowed to zero. "
                          "Consider a lower order.")

        return np.exp(logw + y2)

    def integrate(self, f):
        """
        Apply the quadrature to a function.

        Parameters
        ----------
        f : callable
            ``f(y)`` is evaluated with the (`D`, `N`) node array
            and returns an array with trailing dimension `N`.

        Returns
        -------
        ndarray or scalar
            :math:`\\sum_k w_k f(y_k)`

        """
        return np.sum(f(self.nodes) * self.weights, axis = -1)

    def __repr__(self):
        return f"{type(self).__name__}(D = {self.D:d}, order = {self.order})"


class GaussHermiteQR(QuadratureRule):
    """
    A one-dimensional Gauss-Hermite rule.
    """

    def __init__(self, order):
        x,w = nodes_and_weights_1d(order)
        super().__init__(x.reshape((1,-1)), w, (int(order),), np.sqrt(np.pi))


def tensor_product(rules):
    """
    The direct product of quadrature rules.

    Parameters
    ----------
    rules : list of QuadratureRule
        The factor rules.

    Returns
    -------
    QuadratureRule
        The product rule.

    Notes
    -----
    The product nodes are ordered with the first factor
    varying slowest and the last factor varying fastest,
    the ``indexing = 'ij'`` convention of
    :func:`numpy.meshgrid`.

    """

    rules = list(rules)
    if len(rules) < 1:
        raise ValueError("There must be at least 1 rule.")
    if len(rules) == 1:
        return rules[0]

    # Build a grid of node indices for each factor
    # and gather the coordinates of each axis.
    counts = [r.number_nodes for r in rules]
    idx = np.stack(np.meshgrid(*[np.arange(n) for n in counts],
                               indexing = 'ij')).reshape((len(rules),-1))
    nodes = np.concatenate([r.nodes[:,idx[i]] for i,r in enumerate(rules)], axis = 0)

    # Direct product of the weights
    wgt = np.array(rules[0].weights).copy()
    for r in rules[1:]:
        wgt = np.outer(wgt, r.weights).reshape((-1,))

    order = ()
    norm = 1.0
    for r in rules:
        order = order + r.order
        norm = norm * r.norm

    return QuadratureRule(nodes, wgt, order, norm)
