"""
energy.py

Energy expectation values of scalar and
multi-component wavepackets.

"""

import numpy as np

from .gradient import gradient_coefficients
from .innerproduct import HomogeneousInnerProduct, VectorInnerProduct
from .wavepacket import MultiComponentWavepacket

__all__ = ['kinetic_energy', 'potential_energy', 'total_energy']


def kinetic_energy(packet):
    """
    Calculate the kinetic energy
    :math:`\\langle \\Psi \\vert -\\frac{\\varepsilon^4}{2}\\Delta \\vert \\Psi \\rangle`.

    Parameters
    ----------
    packet : HagedornWavepacket or MultiComponentWavepacket
        The wavepacket.

    Returns
    -------
    float

    Notes
    -----
    The kinetic energy is :math:`\\frac{1}{2}\\sum_d \\Vert -i\\varepsilon^2\\partial_d \\Psi\\Vert^2`.
    The basis is orthonormal, so each norm is that of the
    gradient coefficients.

    """

    if isinstance(packet, MultiComponentWavepacket):
        return sum(kinetic_energy(c) for c in packet.components)

    _,G = gradient_coefficients(packet)

    return 0.5 * abs(packet.phase())**2 * float(np.sum(np.abs(G)**2))

def potential_energy(packet, potential, qr, printlevel = 0):
    """
    Calculate the potential energy by quadrature.

    Parameters
    ----------
    packet : HagedornWavepacket or MultiComponentWavepacket
        The wavepacket.
    potential : callable
        ``potential(x)`` for the (`D`, `N`) physical nodes `x`.
        For a scalar packet, this returns `N` values. For a
        packet with `n` components, it returns an (`n`, `n`, `N`)
        array (or nested lists) of matrix elements.
    qr : QuadratureRule
        The quadrature rule.
    printlevel : int, optional
        Print level. The default is 0.

    Returns
    -------
    float
        The real part of :math:`\\langle \\Psi \\vert V \\vert \\Psi \\rangle`.

    """

    if isinstance(packet, MultiComponentWavepacket):
        def op(x, q, i, j):
            return potential(x)[i][j]
        value = VectorInnerProduct(qr, printlevel = printlevel).quadrature(packet, op)
    else:
        def op(x, q):
            return potential(x)
        value = HomogeneousInnerProduct(qr, printlevel = printlevel).quadrature(packet, op)

    return value.real

def total_energy(packet, potential, qr, printlevel = 0):
    """
    The sum of :func:`kinetic_energy` and :func:`potential_energy`.
    """
    return kinetic_energy(packet) + potential_energy(packet, potential, qr, printlevel = printlevel)
