"""
paramset.py

Gaussian parameter sets :math:`\\Pi = (q, p, Q, P, S)`.

"""

import numpy as np

from .errors import DimensionMismatchError, ParameterSetInvalidError

__all__ = ['ParameterSet', 'DEFAULT_TOL']

DEFAULT_TOL = 1e-10


def _sqrt_inv_sym(A):
    """
    Calculate :math:`A^{-1/2}` for a real symmetric
    positive definite matrix `A`.
    """
    w,v = np.linalg.eigh(A)
    if not np.all(np.isfinite(w)) or np.min(w) <= 0.0:
        raise ParameterSetInvalidError("The Gaussian width matrix is not positive definite")
    if np.min(w) < np.max(w) * np.finfo(np.float64).eps:
        raise ParameterSetInvalidError("The Gaussian width matrix is numerically singular")
    return (v / np.sqrt(w)) @ v.T

def _sqrt_sym(A):
    """
    Calculate :math:`A^{1/2}` for a real symmetric
    positive definite matrix `A`.
    """
    w,v = np.linalg.eigh(A)
    if not np.all(np.isfinite(w)) or np.min(w) <= 0.0:
        raise ParameterSetInvalidError("Q Q^H is not positive definite")
    return (v * np.sqrt(w)) @ v.T


class ParameterSet:
    """
    The Hagedorn parameter set of a wavepacket.

    The parameters must satisfy the compatibility
    (symplecticity) conditions

    .. math::

       Q^T P - P^T Q = 0, \\qquad Q^\\dagger P - P^\\dagger Q = 2i I.

    Attributes
    ----------
    D : int
        The number of dimensions.
    q : (`D`,) ndarray
        The real position.
    p : (`D`,) ndarray
        The real momentum.
    Q : (`D`, `D`) ndarray
        The complex position-space width matrix.
    P : (`D`, `D`) ndarray
        The complex momentum-space width matrix.
    S : complex
        The classical action (global phase).

    """

    def __init__(self, q = None, p = None, Q = None, P = None, S = 0.0, D = None):
        """
        Create a parameter set. Missing entries default to
        :math:`q = p = 0`, :math:`Q = I`, :math:`P = iI`.

        Parameters
        ----------
        q, p : array_like, optional
            Position and momentum.
        Q, P : array_like, optional
            Width matrices.
        S : complex, optional
            The phase. The default is 0.
        D : int, optional
            The number of dimensions. If None, this is
            inferred from the other arguments, or 1.

        """

        if D is None:
            for x in (q, p):
                if x is not None:
                    D = np.size(x)
                    break
        if D is None:
            for X in (Q, P):
                if X is not None:
                    D = np.shape(np.atleast_2d(X))[0]
                    break
        if D is None:
            D = 1

        if D < 1:
            raise DimensionMismatchError("D must be >= 1")

        q = np.zeros(D) if q is None else np.array(q, dtype = np.float64).reshape((-1,))
        p = np.zeros(D) if p is None else np.array(p, dtype = np.float64).reshape((-1,))
        Q = np.eye(D, dtype = np.complex128) if Q is None else np.array(np.atleast_2d(Q), dtype = np.complex128)
        P = 1j * np.eye(D, dtype = np.complex128) if P is None else np.array(np.atleast_2d(P), dtype = np.complex128)

        if q.shape != (D,) or p.shape != (D,):
            raise DimensionMismatchError(f"q and p must have shape ({D:d},)")
        if Q.shape != (D,D) or P.shape != (D,D):
            raise DimensionMismatchError(f"Q and P must have shape ({D:d},{D:d})")

        for X in (q, p, Q, P):
            if not np.all(np.isfinite(X)):
                raise ParameterSetInvalidError("Parameters must be finite")

        if np.linalg.cond(Q) > 1.0 / np.finfo(np.float64).eps:
            raise ParameterSetInvalidError("Q is singular")

        for X in (q, p, Q, P):
            X.flags.writeable = False

        self.D = D
        self.q = q
        self.p = p
        self.Q = Q
        self.P = P
        self.S = complex(S)

        return

    def __repr__(self):
        return (f"ParameterSet(D = {self.D:d},\n  q = {self.q},\n  p = {self.p},\n"
                f"  Q = {self.Q.tolist()},\n  P = {self.P.tolist()},\n  S = {self.S})")

    def copy(self):
        return ParameterSet(self.q, self.p, self.Q, self.P, self.S)

    def same_as(self, other):
        """
        True if `other` has identical position and width
        parameters (the phase `S` is not compared).
        """
        if self is other:
            return True
        if self.D != other.D:
            return False
        return (np.array_equal(self.q, other.q) and np.array_equal(self.p, other.p) and
                np.array_equal(self.Q, other.Q) and np.array_equal(self.P, other.P))

    def compatibility_error(self):
        """
        The norms of the two compatibility-condition residuals.

        Returns
        -------
        r1 : float
            :math:`\\| Q^T P - P^T Q \\|`
        r2 : float
            :math:`\\| Q^\\dagger P - P^\\dagger Q - 2iI \\|`

        """
        Q,P = self.Q, self.P
        r1 = np.linalg.norm(Q.T @ P - P.T @ Q)
        r2 = np.linalg.norm(Q.conj().T @ P - P.conj().T @ Q - 2j * np.eye(self.D))
        return r1, r2

    def is_compatible(self, tol = DEFAULT_TOL):
        """
        Check the compatibility conditions.

        Parameters
        ----------
        tol : float, optional
            The absolute tolerance. The default is :data:`DEFAULT_TOL`.

        Returns
        -------
        bool

        """
        r1,r2 = self.compatibility_error()
        return bool(r1 <= tol and r2 <= tol)

    def check_compatibility(self, tol = DEFAULT_TOL):
        """
        Raise :class:`ParameterSetInvalidError` if the
        compatibility conditions are violated beyond `tol`.
        """
        r1,r2 = self.compatibility_error()
        if r1 > tol or r2 > tol:
            raise ParameterSetInvalidError(
                f"Compatibility conditions violated (residuals {r1:.3e}, {r2:.3e})")
        return

    def width(self):
        """
        The real symmetric matrix
        :math:`\\mathrm{Im}(P Q^{-1}) = (Q Q^\\dagger)^{-1}`.
        """
        G = np.linalg.solve(self.Q.T, self.P.T).T # P @ inv(Q)
        A = G.imag
        return 0.5 * (A + A.T)

    def transformation(self):
        """
        The homogeneous affine transformation.

        Returns
        -------
        q0 : (`D`,) ndarray
            The centre, equal to :attr:`q`.
        Qs : (`D`, `D`) ndarray
            The real symmetric square root
            :math:`(Q Q^\\dagger)^{1/2}`.

        Raises
        ------
        ParameterSetInvalidError
            If :meth:`width` is not positive definite, i.e.
            the Gaussian does not decay in every direction.

        """
        w = np.linalg.eigvalsh(self.width())
        if not np.all(np.isfinite(w)) or np.min(w) <= 0.0:
            raise ParameterSetInvalidError("Im(P Q^-1) is not positive definite")

        QQ = (self.Q @ self.Q.conj().T).real
        Qs = _sqrt_sym(0.5 * (QQ + QQ.T))
        return self.q.copy(), Qs

    def mix(self, other):
        """
        Mix this (bra) parameter set with another (ket)
        parameter set.

        The product :math:`\\overline{\\phi_0^{bra}} \\phi_0^{ket}`
        has modulus proportional to
        :math:`\\exp(-\\varepsilon^{-2} (x - q_0)^T Q_s^{-2} (x - q_0))`.

        Parameters
        ----------
        other : ParameterSet
            The ket parameter set.

        Returns
        -------
        q0 : (`D`,) ndarray
            The combined centre.
        Qs : (`D`, `D`) ndarray
            The real symmetric transformation matrix.

        Notes
        -----
        With :math:`A_r = \\mathrm{Im}(P_r Q_r^{-1})` and
        :math:`A_c = \\mathrm{Im}(P_c Q_c^{-1})`, the combined
        width is :math:`A = A_r + A_c`, the centre is
        :math:`q_0 = A^{-1}(A_r q_r + A_c q_c)`, and
        :math:`Q_s = (A/2)^{-1/2}`. For identical parameter sets
        this reduces to :meth:`transformation`.

        """

        if other.D != self.D:
            raise DimensionMismatchError("Parameter sets have different dimensions")

        Ar = self.width()
        Ac = other.width()
        A = Ar + Ac

        Qs = _sqrt_inv_sym(0.5 * A)

        try:
            q0 = np.linalg.solve(A, Ar @ self.q + Ac @ other.q)
        except np.linalg.LinAlgError as e:
            raise ParameterSetInvalidError("The combined width matrix is singular") from e

        return q0, Qs
