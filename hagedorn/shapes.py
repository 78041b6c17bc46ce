"""
shapes.py

Basis shapes: finite sets of multi-indices
:math:`k = (k_0, \\ldots, k_{D-1})`, :math:`k_d \\geq 0`.

==============================================  =================================
Shape descriptor                                Multi-index set
----------------------------------------------  ---------------------------------
:class:`~hagedorn.HyperCubicShape`              :math:`k_d < K_d`
:class:`~hagedorn.HyperbolicCutShape`           :math:`\\prod_d (1 + k_d) \\leq K`
:class:`~hagedorn.LimitedHyperbolicCutShape`    both of the above
:class:`~hagedorn.GenericShape`                 user predicate inside a box
==============================================  =================================

Descriptors are turned into an enumerated :class:`ShapeEnum`
by :meth:`ShapeEnumerator.generate`. The enumeration order is
lexicographic, i.e. the last index varies fastest.

"""

import itertools
import warnings

import numpy as np

from .errors import InvalidShapeError, DimensionMismatchError

__all__ = ['NOT_FOUND', 'BOX_CHECK_LIMIT', 'ShapeDescriptor', 'HyperCubicShape',
           'HyperbolicCutShape', 'LimitedHyperbolicCutShape',
           'GenericShape', 'ShapeEnumerator', 'ShapeEnum']

NOT_FOUND = -1 # Sentinel for a multi-index outside of a shape
BOX_CHECK_LIMIT = 100000 # Largest box scanned to verify a GenericShape `lower` flag


def _check_dim(D):
    if isinstance(D, bool) or not isinstance(D, (int, np.integer)):
        raise InvalidShapeError("D must be an integer")
    if D < 1:
        raise InvalidShapeError("D must be >= 1")
    return int(D)

def _check_limits(limits, D = None):
    """
    Parse a scalar or list of per-axis limits.
    A scalar is broadcast to `D` axes (or 1 axis if
    `D` is None).
    """

    if np.isscalar(limits):
        limits = [limits] * (1 if D is None else D)
    limits = list(limits)

    if len(limits) < 1:
        raise InvalidShapeError("There must be at least 1 dimension.")
    if D is not None and len(limits) != D:
        raise InvalidShapeError(f"Expected {D:d} limits, received {len(limits):d}")

    for K in limits:
        if isinstance(K, bool) or not isinstance(K, (int, np.integer)):
            raise InvalidShapeError("limits must be integers")
        if K < 0:
            raise InvalidShapeError("limits must be >= 0")

    return tuple(int(K) for K in limits)


class ShapeDescriptor:
    """
    A generic multi-index set predicate.

    Attributes
    ----------
    D : int
        The number of dimensions.
    limits : tuple of int
        The bounding box. Every member satisfies
        ``k[d] < limits[d]``.
    lower : bool
        True if the set is known to be downward closed,
        i.e. :math:`k \\in \\mathfrak{K}` and :math:`k_d > 0`
        imply :math:`k - e_d \\in \\mathfrak{K}`.

    """

    lower = True

    def __init__(self, D, limits):
        self.D = _check_dim(D)
        self.limits = _check_limits(limits, self.D)

    def contains(self, k):
        """
        Test membership of multi-index `k`.
        """
        if len(k) != self.D:
            return False
        for kd, Kd in zip(k, self.limits):
            if kd < 0 or kd >= Kd:
                return False
        return self._contains(k)

    def __contains__(self, k):
        return self.contains(k)

    def _contains(self, k):
        raise NotImplementedError()

    def __repr__(self):
        return f"{type(self).__name__}(D = {self.D:d}, limits = {self.limits})"


class HyperCubicShape(ShapeDescriptor):
    """
    The hypercubic shape, :math:`0 \\leq k_d < K_d`.
    """

    def __init__(self, limits, D = None):
        """
        Parameters
        ----------
        limits : int or list of int
            The per-axis limit :math:`K_d`. A scalar is used for
            every axis.
        D : int, optional
            The number of dimensions. If None, this is
            ``len(limits)`` (or 1 for scalar `limits`).

        """
        if D is not None:
            D = _check_dim(D)
        limits = _check_limits(limits, D)
        super().__init__(len(limits), limits)

    def _contains(self, k):
        return True # The bounding box is the shape


class HyperbolicCutShape(ShapeDescriptor):
    """
    The hyperbolic-cut (sparse) shape,
    :math:`\\prod_{d} (1 + k_d) \\leq K`.

    Attributes
    ----------
    K : int
        The sparsity parameter.
    """

    def __init__(self, D, K):
        D = _check_dim(D)
        K = _check_limits(K, 1)[0]
        super().__init__(D, (K,) * D)
        self.K = K

    def _contains(self, k):
        value = 1
        for kd in k:
            value *= (1 + kd)
        return value <= self.K

    def __repr__(self):
        return f"HyperbolicCutShape(D = {self.D:d}, K = {self.K:d})"


class LimitedHyperbolicCutShape(HyperbolicCutShape):
    """
    A hyperbolic-cut shape additionally
    truncated to the hypercube :math:`k_d < K_d`.
    """

    def __init__(self, D, K, limits):
        super().__init__(D, K)
        limits = _check_limits(limits, self.D)
        self.limits = tuple(min(K, Kd) for Kd in limits)

    def __repr__(self):
        return f"LimitedHyperbolicCutShape(D = {self.D:d}, K = {self.K:d}, limits = {self.limits})"


class GenericShape(ShapeDescriptor):
    """
    A shape defined by an arbitrary predicate within a
    bounding box. The predicate is not assumed to define
    a downward closed set unless `lower` is True.
    """

    def __init__(self, predicate, limits, D = None, lower = False):
        """
        Parameters
        ----------
        predicate : callable
            ``predicate(k)`` returns True for members. `k`
            is a tuple of int.
        limits : int or list of int
            The bounding box.
        D : int, optional
            The number of dimensions.
        lower : bool, optional
            Whether `predicate` is known to describe
            a downward closed set. The default is False.
            If True, members are found by a pruned search
            that skips everything beyond the first excluded
            multi-index along each axis. For bounding boxes of
            at most :data:`BOX_CHECK_LIMIT` members the flag is
            checked against a full scan, with a warning if it
            is wrong. Larger boxes trust the flag.

        """
        if not callable(predicate):
            raise InvalidShapeError("predicate must be callable")
        if D is not None:
            D = _check_dim(D)
        limits = _check_limits(limits, D)
        super().__init__(len(limits), limits)
        self.predicate = predicate
        self.lower = lower

    def _contains(self, k):
        return bool(self.predicate(k))


class ShapeEnumerator:
    """
    Enumerate shape descriptors into :class:`ShapeEnum` objects.
    """

    def generate(self, descriptor):
        """
        Enumerate all members of a shape.

        Parameters
        ----------
        descriptor : ShapeDescriptor
            The shape.

        Returns
        -------
        ShapeEnum
            The enumerated shape, in lexicographic order.

        """

        if not isinstance(descriptor, ShapeDescriptor):
            raise InvalidShapeError("descriptor must be a ShapeDescriptor")

        if descriptor.lower:
            indices = list(self._enumerate_lower(descriptor))
            if isinstance(descriptor, GenericShape) and \
                np.prod(descriptor.limits) <= BOX_CHECK_LIMIT:
                # Verify a user-supplied `lower` flag
                full = self._enumerate_box(descriptor)
                if len(full) != len(indices):
                    warnings.warn(f"{descriptor!r} is flagged as downward closed "
                                  "but is not; enumerating the full bounding box")
                    indices = full
        else:
            indices = self._enumerate_box(descriptor)

        shape = ShapeEnum(indices, descriptor.D, descriptor = descriptor)

        if not shape.closed:
            warnings.warn(f"{descriptor!r} is not downward closed; "
                          "missing recursion inputs will be treated as zero")

        return shape

    def _enumerate_box(self, descriptor):
        """ Filter every member of the bounding box """
        box = [range(K) for K in descriptor.limits]
        return [k for k in itertools.product(*box) if descriptor.contains(k)]

    def _enumerate_lower(self, descriptor):
        """
        Depth-first lexicographic enumeration of a
        downward closed set. Once a prefix padded with
        zeros leaves the set, no larger value of the
        current axis can re-enter it.
        """

        D = descriptor.D

        def extend(prefix):
            n = len(prefix)
            if n == D:
                yield tuple(prefix)
                return
            pad = (0,) * (D - n - 1)
            for kd in range(descriptor.limits[n]):
                trial = prefix + (kd,)
                if not descriptor.contains(trial + pad):
                    break
                yield from extend(trial)

        yield from extend(())


class ShapeEnum:
    """
    An enumerated, immutable multi-index set.

    Multi-indices are stored as the rows of a read-only
    integer array, with an explicit look-up table and
    pre-computed neighbour tables. A neighbour outside of
    the set is marked with :data:`NOT_FOUND`.

    Attributes
    ----------
    D : int
        The number of dimensions.
    n_entries : int
        The number of multi-indices.
    indices : (`n_entries`, `D`) ndarray
        The multi-index table.
    limits : tuple of int
        The bounding box, ``indices[:,d] < limits[d]``.
    closed : bool
        True if the set is downward closed.
    descriptor : ShapeDescriptor or None
        The generating descriptor, if any.

    """

    def __init__(self, indices, D, descriptor = None):
        """
        Create a ShapeEnum from a list of multi-indices.
        Duplicates are removed and the result is sorted
        lexicographically.

        Parameters
        ----------
        indices : iterable of tuple
            The multi-indices.
        D : int
            The number of dimensions.
        descriptor : ShapeDescriptor, optional
            The generating descriptor.

        """

        D = _check_dim(D)

        keys = set()
        for k in indices:
            k = tuple(int(kd) for kd in k)
            if len(k) != D:
                raise InvalidShapeError("multi-index has the wrong length")
            if min(k) < 0:
                raise InvalidShapeError("multi-indices must be non-negative")
            keys.add(k)
        keys = sorted(keys)

        n = len(keys)
        table = np.array(keys, dtype = np.int64).reshape((n, D))
        lookup = {k : i for i,k in enumerate(keys)}

        # Neighbour tables
        fwd = np.full((n, D), NOT_FOUND, dtype = np.int64)
        bwd = np.full((n, D), NOT_FOUND, dtype = np.int64)
        for i,k in enumerate(keys):
            for d in range(D):
                kf = k[:d] + (k[d] + 1,) + k[d+1:]
                fwd[i,d] = lookup.get(kf, NOT_FOUND)
                if k[d] > 0:
                    kb = k[:d] + (k[d] - 1,) + k[d+1:]
                    bwd[i,d] = lookup.get(kb, NOT_FOUND)

        for a in (table, fwd, bwd):
            a.flags.writeable = False

        if n > 0:
            limits = tuple(int(x) + 1 for x in table.max(axis = 0))
        else:
            limits = (0,) * D
        if descriptor is not None:
            limits = descriptor.limits

        self.D = D
        self.n_entries = n
        self.indices = table
        self.limits = limits
        self.descriptor = descriptor
        self.closed = bool(np.all((bwd != NOT_FOUND) | (table == 0)))

        self._lookup = lookup
        self._fwd = fwd
        self._bwd = bwd

        return

    def size(self):
        """ The number of multi-indices. """
        return self.n_entries

    def __len__(self):
        return self.n_entries

    def __iter__(self):
        return iter(self._lookup)

    def __contains__(self, k):
        return self.index_of(k) != NOT_FOUND

    def __repr__(self):
        return f"ShapeEnum(D = {self.D:d}, n_entries = {self.n_entries:d})"

    def index_of(self, k):
        """
        The enumeration position of a multi-index.

        Parameters
        ----------
        k : tuple or array_like
            The multi-index.

        Returns
        -------
        int
            The position, or :data:`NOT_FOUND`.

        """
        if len(k) != self.D:
            raise DimensionMismatchError(f"multi-index must have length {self.D:d}")
        return self._lookup.get(tuple(int(kd) for kd in k), NOT_FOUND)

    def multi_index_at(self, i):
        """
        The multi-index at enumeration position `i`.
        """
        if i < 0 or i >= self.n_entries:
            raise IndexError(f"position {i} is out of range")
        return tuple(int(kd) for kd in self.indices[i])

    def forward(self, i, d):
        """
        The position of :math:`k + e_d`, where :math:`k` is
        the multi-index at position `i`, or :data:`NOT_FOUND`.
        """
        return int(self._fwd[i,d])

    def backward(self, i, d):
        """
        The position of :math:`k - e_d`, where :math:`k` is
        the multi-index at position `i`, or :data:`NOT_FOUND`.
        """
        return int(self._bwd[i,d])

    @property
    def forward_table(self):
        """ (`n_entries`, `D`) read-only forward neighbour table """
        return self._fwd

    @property
    def backward_table(self):
        """ (`n_entries`, `D`) read-only backward neighbour table """
        return self._bwd

    def extend(self):
        """
        The extended shape containing every member
        and all of its forward neighbours,
        :math:`\\mathfrak{K} \\cup \\{k + e_d\\}`.

        Returns
        -------
        ShapeEnum
            The extended shape.

        """
        new = list(self._lookup)
        for k in self._lookup:
            for d in range(self.D):
                new.append(k[:d] + (k[d] + 1,) + k[d+1:])

        return ShapeEnum(new, self.D)
