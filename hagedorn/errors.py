"""
errors.py

Exception classes. All are sub-classes of
ValueError, so callers catching ValueError for
bad arguments continue to work.

"""

__all__ = ['InvalidShapeError', 'InvalidQuadratureOrderError',
           'DimensionMismatchError', 'ParameterSetInvalidError']

class InvalidShapeError(ValueError):
    """ A basis shape descriptor is malformed """
    pass

class InvalidQuadratureOrderError(ValueError):
    """ A quadrature order is not a positive integer """
    pass

class DimensionMismatchError(ValueError):
    """ Bra, ket, nodes, or operator values disagree in size """
    pass

class ParameterSetInvalidError(ValueError):
    """
    A Gaussian parameter set is degenerate (singular Q) or
    violates the symplectic compatibility conditions.
    """
    pass
