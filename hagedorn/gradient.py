"""
gradient.py

The semiclassical momentum operator :math:`-i\\varepsilon^2\\nabla`
applied to a Hagedorn wavepacket. In terms of the ladder
operators,

.. math::

   -i\\varepsilon^2\\nabla - p = \\frac{\\varepsilon}{\\sqrt{2}}
   \\left( P A^\\dagger + \\bar{P} A \\right),

so the result is again a linear combination of the
basis functions on the extended shape.

"""

import numpy as np

from .errors import InvalidShapeError
from .shapes import NOT_FOUND

__all__ = ['gradient_coefficients']


def gradient_coefficients(packet):
    """
    Calculate the coefficients of
    :math:`-i\\varepsilon^2 \\partial_d \\Psi` for each axis `d`.

    Parameters
    ----------
    packet : HagedornWavepacket
        The scalar packet. Its shape must be downward closed.

    Returns
    -------
    shape : ShapeEnum
        The extended shape.
    G : (`D`, ``len(shape)``) ndarray
        ``G[d]`` are the coefficients of the `d`-th gradient
        component with respect to the same parameter set
        (and phase) as `packet`.

    """

    if not packet.shape.closed:
        raise InvalidShapeError("The gradient requires a downward closed shape")

    D = packet.D
    P = packet.parameters.P
    p = packet.parameters.p
    c = packet.coefficients

    ext = packet.shape.extend()
    G = np.zeros((D, ext.n_entries), dtype = np.complex128)

    # The position of each original multi-index
    # in the extended shape
    pos = np.array([ext.index_of(k) for k in packet.shape.indices], dtype = np.int64)

    scale = packet.eps / np.sqrt(2.0)

    for i,k in enumerate(packet.shape.indices):
        e = pos[i]
        G[:,e] += p * c[i]
        for j in range(D):
            # Raising operator, k -> k + e_j
            f = ext.forward(e, j)
            G[:,f] += scale * np.sqrt(k[j] + 1.0) * c[i] * P[:,j]
            # Lowering operator, k -> k - e_j
            if k[j] > 0:
                b = ext.backward(e, j)
                if b != NOT_FOUND:
                    G[:,b] += scale * np.sqrt(k[j]) * c[i] * P[:,j].conj()

    return ext, G
