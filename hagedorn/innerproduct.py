"""
innerproduct.py

Quadrature-based matrix elements between Hagedorn
wavepacket basis functions,

.. math::

   M_{kl} = \\langle \\phi_k[\\Pi_{bra}] \\vert f \\vert \\phi_l[\\Pi_{ket}] \\rangle
          = \\int dx\\, \\overline{\\phi_k(x)} f(x) \\phi_l(x).

With the affine change of variables :math:`x = q_0 + \\varepsilon Q_s y`,
the product of the two Gaussian envelopes becomes
:math:`\\propto e^{-|y|^2}` and the integral is evaluated
with a Gauss-Hermite rule,

.. math::

   M_{kl} \\approx \\varepsilon^D \\det Q_s \\sum_n w_n e^{|y_n|^2}
   \\overline{\\phi_k(x_n)} f(x_n) \\phi_l(x_n).

=======================================  ==========================================
Class                                    Description
---------------------------------------  ------------------------------------------
:class:`HomogeneousInnerProduct`         Bra and ket are the same packet.
:class:`InhomogeneousInnerProduct`       Bra and ket have their own parameters.
:class:`VectorInnerProduct`              Block matrices of multi-component packets.
=======================================  ==========================================

"""

import time

import numpy as np

from .basis import transform_nodes
from .errors import DimensionMismatchError, ParameterSetInvalidError
from .quadrature import QuadratureRule, tensor_product
from .wavepacket import HagedornWavepacket, MultiComponentWavepacket

__all__ = ['default_op', 'InnerProduct', 'HomogeneousInnerProduct',
           'InhomogeneousInnerProduct', 'VectorInnerProduct']


def default_op(nodes, pos, *args):
    """
    The identity operator. Returns ones at every node.
    """
    return np.ones((nodes.shape[1],), dtype = np.complex128)

def _bind_components(op, i, j):
    """ Fix the component indices of a vector operator """
    def bound(nodes, pos):
        return op(nodes, pos, i, j)
    return bound


class InnerProduct:
    """
    Common quadrature handling of the inner product engines.

    Attributes
    ----------
    qr : QuadratureRule
        The quadrature rule. A 1-d rule is applied to every
        axis of a multi-dimensional packet.
    printlevel : int
        Print level. The default is 0.

    """

    def __init__(self, qr, printlevel = 0):

        if not isinstance(qr, QuadratureRule):
            raise TypeError("qr must be a QuadratureRule")

        self.qr = qr
        self.printlevel = printlevel
        self._rules = {qr.D : qr}

        return

    def rule(self, D):
        """
        The `D`-dimensional quadrature rule.
        """
        if D not in self._rules:
            if self.qr.D != 1:
                raise DimensionMismatchError(f"The quadrature rule has {self.qr.D:d} dimensions, "
                                             f"the packets have {D:d}")
            self._rules[D] = tensor_product([self.qr] * D)
        return self._rules[D]

    def _check_pair(self, bra, ket):
        if bra.D != ket.D:
            raise DimensionMismatchError(f"bra has {bra.D:d} dimensions, ket has {ket.D:d}")
        if bra.eps != ket.eps:
            raise ValueError("bra and ket must have the same eps")

    def _transform(self, bra, ket, cache = None):
        """
        Calculate the physical nodes, the reference position,
        and the quadrature factor (excluding the phase and the
        operator values) for a bra/ket pair.
        """

        if cache is not None:
            key = ('T',) + tuple(sorted((id(bra.parameters), id(ket.parameters))))
            if key in cache:
                return cache[key]

        D = ket.D
        eps = ket.eps
        rule = self.rule(D)

        if bra.parameters.same_as(ket.parameters):
            q0,Qs = ket.parameters.transformation()
        else:
            q0,Qs = bra.parameters.mix(ket.parameters)

        detQs = np.linalg.det(Qs)
        if not np.isfinite(detQs) or detQs <= 0.0:
            raise ParameterSetInvalidError("The node transformation is singular")

        nodes = transform_nodes(q0, Qs, eps, rule.nodes)
        factor = eps**D * detQs * rule.scaled_weights()

        result = (nodes, q0, factor)
        if cache is not None:
            cache[key] = result
        return result

    def _basis(self, packet, nodes, cache = None, tkey = None):
        """ Evaluate a packet's basis, re-using cached values """
        if cache is None:
            return packet.evaluate_basis(nodes)
        key = ('B', id(packet.parameters), id(packet.shape), tkey)
        if key not in cache:
            cache[key] = packet.evaluate_basis(nodes)
        return cache[key]

    def _evaluate_op(self, op, nodes, pos):
        """ Evaluate an operator and check its output """
        N = nodes.shape[1]
        values = np.asarray(op(nodes, pos), dtype = np.complex128)
        if values.ndim == 0:
            values = np.full((N,), values)
        elif values.size != N:
            raise DimensionMismatchError(f"The operator returned {values.size:d} values "
                                         f"for {N:d} nodes")
        values = values.reshape((N,))
        if not np.all(np.isfinite(values)):
            raise ValueError("The operator returned non-finite values")
        return values

    def _pair_matrix(self, bra, ket, op, cache = None):
        """
        The scalar matrix :math:`\\langle \\phi^{bra} \\vert f \\vert \\phi^{ket} \\rangle`.
        """

        self._check_pair(bra, ket)

        nodes, pos, factor = self._transform(bra, ket, cache)
        tkey = tuple(sorted((id(bra.parameters), id(ket.parameters))))

        values = self._evaluate_op(op, nodes, pos)

        bra_basis = self._basis(bra, nodes, cache, tkey)
        if ket.shape is bra.shape and ket.parameters.same_as(bra.parameters):
            ket_basis = bra_basis
        else:
            ket_basis = self._basis(ket, nodes, cache, tkey)

        phase = np.exp(1j * (ket.parameters.S - np.conj(bra.parameters.S)) / ket.eps**2)

        result = (bra_basis.conj() * (phase * factor * values)) @ ket_basis.T

        if not np.all(np.isfinite(result)):
            raise ParameterSetInvalidError("Basis evaluation produced non-finite values")

        if self.printlevel >= 1:
            print(f"Inner product block {result.shape[0]:d} x {result.shape[1]:d} "
                  f"with {nodes.shape[1]:d} nodes")

        return result


class InhomogeneousInnerProduct(InnerProduct):
    """
    Inner products between scalar packets with
    (possibly) different parameter sets and shapes.
    """

    def build_matrix(self, bra, ket, op = None):
        """
        Calculate the matrix of an operator between the basis
        functions of two packets. Coefficients are ignored.

        Parameters
        ----------
        bra, ket : HagedornWavepacket
            The packets.
        op : callable, optional
            ``op(x, q0)`` returns the operator values at the
            (`D`, `N`) physical nodes `x`. `q0` is the reference
            position. The result may be a scalar or have `N`
            elements. If None, the identity is used.

        Returns
        -------
        (`bra.n_entries`, `ket.n_entries`) ndarray
            The matrix, including the relative phase
            :math:`e^{i(S_{ket} - \\bar{S}_{bra})/\\varepsilon^2}`.

        """
        if op is None:
            op = default_op
        return self._pair_matrix(bra, ket, op)

    def quadrature(self, bra, ket = None, op = None):
        """
        Calculate :math:`\\langle \\Psi_{bra} \\vert f \\vert \\Psi_{ket} \\rangle`.

        Parameters
        ----------
        bra : HagedornWavepacket
            The bra.
        ket : HagedornWavepacket, optional
            The ket. If None, `bra` is used.
        op : callable, optional
            The operator (see :meth:`build_matrix`).

        Returns
        -------
        complex

        """
        if ket is None:
            ket = bra
        M = self.build_matrix(bra, ket, op)
        return complex(np.conj(bra.coefficients) @ M @ ket.coefficients)


class HomogeneousInnerProduct(InnerProduct):
    """
    Inner products of a scalar packet with itself.
    The basis is evaluated once.
    """

    def build_matrix(self, packet, op = None):
        """
        Calculate the matrix of an operator in the basis of
        a packet. Coefficients are ignored.

        Parameters
        ----------
        packet : HagedornWavepacket
            The packet.
        op : callable, optional
            ``op(x, q)`` (see :meth:`InhomogeneousInnerProduct.build_matrix`).

        Returns
        -------
        (`packet.n_entries`, `packet.n_entries`) ndarray

        """
        if op is None:
            op = default_op
        return self._pair_matrix(packet, packet, op)

    def quadrature(self, packet, op = None):
        """
        Calculate :math:`\\langle \\Psi \\vert f \\vert \\Psi \\rangle`.
        """
        M = self.build_matrix(packet, op)
        c = packet.coefficients
        return complex(np.conj(c) @ M @ c)


class VectorInnerProduct(InnerProduct):
    """
    Block matrices of multi-component packets.
    Block :math:`(i,j)` is the scalar matrix between
    component :math:`i` of the bra and component
    :math:`j` of the ket.
    """

    def build_matrix(self, packet, op = None, ket = None):
        """
        Calculate the block matrix of an operator.
        Coefficients are ignored.

        Parameters
        ----------
        packet : MultiComponentWavepacket
            The bra (and ket) packet.
        op : callable, optional
            ``op(x, q0, i, j)`` returns the values of the
            :math:`(i,j)` operator element at the nodes `x`.
            If None, the identity is used for every block.
        ket : MultiComponentWavepacket, optional
            A different ket packet. If None, `packet` is used.

        Returns
        -------
        (`n_bra`, `n_ket`) ndarray
            The block matrix, where `n_bra` and `n_ket` are the
            total coefficient counts.

        Notes
        -----
        Block offsets are the cumulative component sizes. Every
        block is written exactly once. Within a call, the node
        transformation and basis values are shared between blocks
        with the same parameter sets (and shapes), so homogeneous
        packets evaluate each distinct shape only once.

        """

        bra = self._as_vector(packet)
        ket = bra if ket is None else self._as_vector(ket)

        if bra.D != ket.D:
            raise DimensionMismatchError(f"bra has {bra.D:d} dimensions, ket has {ket.D:d}")
        if op is None:
            op = default_op

        bra_offsets, bra_sizes = bra.offsets(), bra.sizes()
        ket_offsets, ket_sizes = ket.offsets(), ket.sizes()

        result = np.zeros((sum(bra_sizes), sum(ket_sizes)), dtype = np.complex128)

        if self.printlevel >= 1:
            print(f"Building {result.shape[0]:d} x {result.shape[1]:d} block matrix "
                  f"({bra.n_components:d} x {ket.n_components:d} components)")

        cache = {}
        for i in range(bra.n_components):
            for j in range(ket.n_components):
                tic = time.perf_counter()
                block = self._pair_matrix(bra.component(i), ket.component(j),
                                          _bind_components(op, i, j), cache)
                r0, c0 = bra_offsets[i], ket_offsets[j]
                result[r0:(r0 + bra_sizes[i]), c0:(c0 + ket_sizes[j])] = block
                if self.printlevel >= 2:
                    print(f"Block ({i:d},{j:d}) ... {time.perf_counter() - tic:.3e} s")

        return result

    def quadrature(self, packet, op = None, ket = None):
        """
        Calculate :math:`\\langle \\Psi \\vert f \\vert \\Psi' \\rangle`
        summed over all component pairs.
        """
        bra = self._as_vector(packet)
        ket = bra if ket is None else self._as_vector(ket)
        M = self.build_matrix(bra, op, ket)
        return complex(np.conj(bra.get_coefficient_vector()) @ M @ ket.get_coefficient_vector())

    @staticmethod
    def _as_vector(packet):
        if isinstance(packet, MultiComponentWavepacket):
            return packet
        elif isinstance(packet, HagedornWavepacket):
            return MultiComponentWavepacket([packet])
        else:
            raise TypeError("packet must be a MultiComponentWavepacket or HagedornWavepacket")
