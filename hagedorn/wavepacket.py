"""
wavepacket.py

Scalar and multi-component Hagedorn wavepackets,

.. math::

   \\Psi(x) = e^{iS/\\varepsilon^2} \\sum_{k \\in \\mathfrak{K}} c_k \\phi_k[\\Pi](x).

"""

import numpy as np

from .basis import evaluate_basis, _check_nodes
from .errors import DimensionMismatchError

__all__ = ['HagedornWavepacket', 'MultiComponentWavepacket']


class HagedornWavepacket:
    """
    A scalar Hagedorn wavepacket.

    Attributes
    ----------
    eps : float
        The semiclassical scaling parameter.
    parameters : ParameterSet
        The Gaussian parameters. May be shared with other
        packets.
    shape : ShapeEnum
        The basis shape. May be shared with other packets.
    coefficients : (``len(shape)``,) ndarray
        The complex basis coefficients, ordered like `shape`.
    D : int
        The number of dimensions.

    """

    def __init__(self, eps, parameters, shape, coefficients = None):
        """
        Create a scalar wavepacket.

        Parameters
        ----------
        eps : float
            The scaling parameter. Must be positive.
        parameters : ParameterSet
            The parameter set.
        shape : ShapeEnum
            The basis shape.
        coefficients : array_like, optional
            The coefficients. If None, these are zero.

        """

        if not eps > 0:
            raise ValueError("eps must be positive")
        if parameters.D != shape.D:
            raise DimensionMismatchError("parameters and shape have different dimensions")

        self.eps = float(eps)
        self.parameters = parameters
        self.shape = shape
        self.D = shape.D
        self.set_coefficients(coefficients)

        return

    def set_coefficients(self, coefficients = None):
        """
        Replace the coefficient vector.
        """
        n = self.shape.n_entries
        if coefficients is None:
            c = np.zeros((n,), dtype = np.complex128)
        else:
            c = np.array(coefficients, dtype = np.complex128).reshape((-1,))
            if c.shape != (n,):
                raise DimensionMismatchError(f"coefficients must have length {n:d}")
        self.coefficients = c

    def __repr__(self):
        return (f"HagedornWavepacket(D = {self.D:d}, eps = {self.eps}, "
                f"n_entries = {self.shape.n_entries:d})")

    @property
    def n_entries(self):
        return self.shape.n_entries

    def prefactor(self):
        """
        The ground-state normalization,
        :math:`(\\pi\\varepsilon^2)^{-D/4} (\\det Q)^{-1/2}`.
        """
        return (np.pi * self.eps**2) ** (-0.25 * self.D) / np.sqrt(np.linalg.det(self.parameters.Q))

    def phase(self):
        """ The global phase factor :math:`e^{iS/\\varepsilon^2}` """
        return np.exp(1j * self.parameters.S / self.eps**2)

    def evaluate_basis(self, x):
        """
        Evaluate all basis functions.

        Parameters
        ----------
        x : (`D`, `N`) array_like
            The evaluation points.

        Returns
        -------
        (`n_entries`, `N`) ndarray

        """
        return evaluate_basis(self.parameters, self.shape, x, self.eps)

    def evaluate(self, x):
        """
        Evaluate the wavepacket.

        Parameters
        ----------
        x : (`D`, `N`) array_like
            The evaluation points. For `D` = 1, a 1-d
            array is accepted.

        Returns
        -------
        (`N`,) ndarray

        """
        x = _check_nodes(x, self.D)
        basis = self.evaluate_basis(x)
        return self.phase() * (self.coefficients @ basis)

    def norm(self):
        """
        The L2 norm. The basis is orthonormal, so this
        is the norm of the coefficient vector scaled by
        :math:`|e^{iS/\\varepsilon^2}|`.
        """
        return abs(self.phase()) * np.linalg.norm(self.coefficients)

    def copy(self):
        """
        A copy with independent coefficients. The shape
        and parameter set remain shared.
        """
        return HagedornWavepacket(self.eps, self.parameters, self.shape, self.coefficients.copy())


class MultiComponentWavepacket:
    """
    A vector-valued wavepacket with `n_components` scalar
    components. Components may have their own parameter
    sets and shapes (inhomogeneous) or share a single
    parameter set (homogeneous).

    Attributes
    ----------
    components : list of HagedornWavepacket
        The components.
    D : int
        The number of dimensions.
    eps : float
        The common scaling parameter.

    """

    def __init__(self, components):

        components = list(components)
        if len(components) < 1:
            raise ValueError("There must be at least 1 component.")

        D = components[0].D
        eps = components[0].eps
        for c in components:
            if c.D != D:
                raise DimensionMismatchError("All components must have the same dimension")
            if c.eps != eps:
                raise ValueError("All components must have the same eps")

        self.components = components
        self.D = D
        self.eps = eps

        return

    @classmethod
    def homogeneous(cls, eps, parameters, shapes, coefficients = None):
        """
        Create a homogeneous wavepacket whose components
        share one parameter set.

        Parameters
        ----------
        eps : float
            The scaling parameter.
        parameters : ParameterSet
            The shared parameters.
        shapes : list of ShapeEnum
            The shape of each component.
        coefficients : list of array_like, optional
            The coefficients of each component.

        Returns
        -------
        MultiComponentWavepacket

        """
        if coefficients is None:
            coefficients = [None] * len(shapes)
        if len(coefficients) != len(shapes):
            raise DimensionMismatchError("shapes and coefficients must have the same length")
        return cls([HagedornWavepacket(eps, parameters, K, c) for K,c in zip(shapes, coefficients)])

    def __repr__(self):
        return (f"MultiComponentWavepacket(D = {self.D:d}, eps = {self.eps}, "
                f"n_components = {self.n_components:d})")

    @property
    def n_components(self):
        return len(self.components)

    def component(self, i):
        return self.components[i]

    def is_homogeneous(self):
        """
        True if all components share identical
        Gaussian parameters.
        """
        Pi = self.components[0].parameters
        return all(c.parameters.same_as(Pi) for c in self.components[1:])

    def sizes(self):
        """ The coefficient count of each component """
        return [c.n_entries for c in self.components]

    def offsets(self):
        """
        The position of each component's first coefficient
        within the full coefficient vector, i.e. the
        cumulative sizes of the preceding components.
        """
        sizes = self.sizes()
        return [int(x) for x in np.concatenate(([0], np.cumsum(sizes)[:-1]))]

    def get_coefficient_vector(self):
        """
        The concatenated coefficient vector.
        """
        return np.concatenate([c.coefficients for c in self.components])

    def set_coefficient_vector(self, c):
        """
        Distribute a concatenated coefficient vector
        to the components.
        """
        c = np.asarray(c).reshape((-1,))
        if c.size != sum(self.sizes()):
            raise DimensionMismatchError("The coefficient vector has the wrong length")
        for comp, start in zip(self.components, self.offsets()):
            comp.set_coefficients(c[start:start + comp.n_entries])

    def evaluate(self, x):
        """
        Evaluate every component.

        Returns
        -------
        (`n_components`, `N`) ndarray

        """
        x = _check_nodes(x, self.D)
        return np.stack([c.evaluate(x) for c in self.components])

    def norm(self):
        """ The L2 norm of the vector-valued function """
        return np.sqrt(sum(c.norm()**2 for c in self.components))
