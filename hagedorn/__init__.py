"""
HAGEDORN
========

A Python package for semiclassical Hagedorn
wavepackets: basis shapes, Gauss-Hermite quadrature,
and quadrature-based inner products and observables.

"""

# Import sub-modules into namespace
from . import errors
from .errors import *

from . import shapes
from .shapes import *

from . import quadrature
from .quadrature import *

from . import paramset
from .paramset import *

from . import basis
from .basis import *

from . import wavepacket
from .wavepacket import *

from . import innerproduct
from .innerproduct import *

from . import gradient
from .gradient import *

from . import energy
from .energy import *

__version__ = '0.3.dev0'

__all__ = ['plot']
__all__ += errors.__all__
__all__ += shapes.__all__
__all__ += quadrature.__all__
__all__ += paramset.__all__
__all__ += basis.__all__
__all__ += wavepacket.__all__
__all__ += innerproduct.__all__
__all__ += gradient.__all__
__all__ += energy.__all__

import numpy as np
import matplotlib.pyplot as plt


def plot(packet, x, ls = 'k-', parts = False):
    """
    Plot the density of a one-dimensional wavepacket.

    Parameters
    ----------
    packet : HagedornWavepacket or MultiComponentWavepacket
        A one-dimensional packet.
    x : array_like
        The 1-D grid.
    ls : str, optional
        Line spec of the density. The default is 'k-'.
    parts : bool, optional
        If True, also plot the real and imaginary parts
        of each component. The default is False.

    Returns
    -------
    fig, ax
        Plot objects

    """

    if packet.D != 1:
        raise ValueError("Only one-dimensional packets can be plotted")

    x = np.asarray(x, dtype = np.float64).reshape((-1,))

    if isinstance(packet, MultiComponentWavepacket):
        psi = packet.evaluate(x.reshape((1,-1)))
    else:
        psi = packet.evaluate(x.reshape((1,-1))).reshape((1,-1))

    fig = plt.figure()
    ax = plt.gca()

    ax.plot(x, np.sum(np.abs(psi)**2, axis = 0), ls, label = '$|\\Psi|^2$')
    if parts:
        for i in range(psi.shape[0]):
            ax.plot(x, psi[i].real, '-', label = f'Re $\\Psi_{i:d}$')
            ax.plot(x, psi[i].imag, '--', label = f'Im $\\Psi_{i:d}$')
        ax.legend()

    ax.set_xlabel('x')

    return fig, ax
