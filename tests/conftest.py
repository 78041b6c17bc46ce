import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

import hagedorn as hd


def random_parameters(D, seed = 0, S = 0.0):
    """
    A random parameter set satisfying the compatibility
    conditions. With Q = A U (A real, U unitary) and
    P = (R + i (A A^T)^-1) Q, R real symmetric.
    """
    rng = np.random.default_rng(seed)

    A = np.eye(D) + 0.3 * rng.standard_normal((D,D))
    U = np.diag(np.exp(1j * rng.uniform(-np.pi, np.pi, D)))
    Q = A @ U

    R = 0.5 * rng.standard_normal((D,D))
    R = 0.5 * (R + R.T)
    M = np.linalg.inv(A @ A.T)
    P = (R + 1j * M) @ Q

    q = rng.standard_normal(D)
    p = rng.standard_normal(D)

    return hd.ParameterSet(q, p, Q, P, S)


@pytest.fixture
def make_parameters():
    return random_parameters


@pytest.fixture
def enumerator():
    return hd.ShapeEnumerator()


@pytest.fixture
def cube_1d(enumerator):
    return enumerator.generate(hd.HyperCubicShape(6))


@pytest.fixture
def cube_2d(enumerator):
    return enumerator.generate(hd.HyperCubicShape([3, 4]))
