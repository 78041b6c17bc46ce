import numpy as np
import pytest

import hagedorn as hd


def ladder(n):
    """ Truncated annihilation and creation operators """
    a = np.diag(np.sqrt(np.arange(1, n)), 1)
    return a, a.T


@pytest.mark.parametrize('order', [1, 4])
def test_normalization_of_ground_state(enumerator, order):
    shape = enumerator.generate(hd.HyperCubicShape(1))
    packet = hd.HagedornWavepacket(0.3, hd.ParameterSet(), shape)

    M = hd.HomogeneousInnerProduct(hd.GaussHermiteQR(order)).build_matrix(packet)

    assert M.shape == (1, 1)
    assert M[0,0] == pytest.approx(1.0, abs = 1e-12)


def test_overlap_is_hermitian_identity(cube_2d, make_parameters):
    packet = hd.HagedornWavepacket(0.25, make_parameters(2, seed = 1), cube_2d)
    ip = hd.HomogeneousInnerProduct(hd.GaussHermiteQR(10))

    M = ip.build_matrix(packet)

    assert M.shape == (12, 12)
    np.testing.assert_allclose(M, M.conj().T, atol = 1e-10)
    np.testing.assert_allclose(M, np.eye(12), atol = 1e-10)


def test_position_operator_1d():
    eps, q = 0.5, 0.7
    shape = hd.ShapeEnumerator().generate(hd.HyperCubicShape(6))
    packet = hd.HagedornWavepacket(eps, hd.ParameterSet(q = q, p = 0.3), shape)
    ip = hd.HomogeneousInnerProduct(hd.GaussHermiteQR(8))

    X = ip.build_matrix(packet, lambda x, pos: x[0])

    a,ap = ladder(6)
    exact = q * np.eye(6) + eps / np.sqrt(2) * (a + ap)
    np.testing.assert_allclose(X, exact, atol = 1e-12)


def test_harmonic_matrix_elements_are_exact():
    # x^2 / 2 in the Hermite basis
    eps, K = 0.3, 6
    shape = hd.ShapeEnumerator().generate(hd.HyperCubicShape(K))
    packet = hd.HagedornWavepacket(eps, hd.ParameterSet(), shape)

    # Degree of the integrand is 2(K-1) + 2 = 12 <= 2m - 1
    ip = hd.HomogeneousInnerProduct(hd.GaussHermiteQR(7))
    V = ip.build_matrix(packet, lambda x, pos: 0.5 * x[0]**2)

    a,ap = ladder(K + 1)
    xm = eps / np.sqrt(2) * (a + ap)
    exact = (0.5 * xm @ xm)[:K,:K]

    np.testing.assert_allclose(V, exact, atol = 1e-13)


def test_convergence_with_order(enumerator):
    # <phi_0 | cos(x) | phi_0> = exp(-eps^2/4)
    eps = 1.0
    shape = enumerator.generate(hd.HyperCubicShape(1))
    packet = hd.HagedornWavepacket(eps, hd.ParameterSet(), shape)
    exact = np.exp(-eps**2 / 4)

    err = []
    for order in [2, 4, 8, 16]:
        ip = hd.HomogeneousInnerProduct(hd.GaussHermiteQR(order))
        value = ip.build_matrix(packet, lambda x, pos: np.cos(x[0]))[0,0]
        err.append(abs(value - exact))

    assert err[0] > err[1] > err[2]
    assert err[3] < 1e-13


def test_operator_receives_reference_position(cube_1d):
    packet = hd.HagedornWavepacket(0.5, hd.ParameterSet(q = 1.5), cube_1d)
    received = []

    def op(x, pos):
        received.append(np.array(pos))
        return np.ones(x.shape[1])

    hd.HomogeneousInnerProduct(hd.GaussHermiteQR(4)).build_matrix(packet, op)
    np.testing.assert_allclose(received[0], [1.5])


def test_inhomogeneous_reduces_to_homogeneous(cube_2d, make_parameters):
    Pi = make_parameters(2, seed = 7)
    packet = hd.HagedornWavepacket(0.4, Pi, cube_2d)
    qr = hd.GaussHermiteQR(9)

    def op(x, pos):
        return x[0] * x[1] + 1.0

    M1 = hd.HomogeneousInnerProduct(qr).build_matrix(packet, op)
    M2 = hd.InhomogeneousInnerProduct(qr).build_matrix(packet, packet.copy(), op)

    np.testing.assert_allclose(M1, M2, atol = 1e-12)

    # Separate but equal parameter sets use the same transformation
    other = hd.HagedornWavepacket(0.4, Pi.copy(), cube_2d)
    M3 = hd.InhomogeneousInnerProduct(qr).build_matrix(packet, other, op)
    np.testing.assert_allclose(M1, M3, atol = 1e-12)


def test_inhomogeneous_ground_state_overlap(enumerator):
    # Two real Gaussians, <phi_0(a)|phi_0(b)> = exp(-(a-b)^2/(4 eps^2))
    eps = 0.5
    shape = enumerator.generate(hd.HyperCubicShape(1))
    bra = hd.HagedornWavepacket(eps, hd.ParameterSet(q = -0.2), shape)
    ket = hd.HagedornWavepacket(eps, hd.ParameterSet(q = 0.4), shape)

    M = hd.InhomogeneousInnerProduct(hd.GaussHermiteQR(3)).build_matrix(bra, ket)

    assert M[0,0] == pytest.approx(np.exp(-0.36 / (4 * eps**2)), rel = 1e-12)


def test_inhomogeneous_ground_state_overlap_with_momentum(enumerator):
    eps = 1.0
    shape = enumerator.generate(hd.HyperCubicShape(1))
    bra = hd.HagedornWavepacket(eps, hd.ParameterSet(q = 0.0, p = 0.0), shape)
    ket = hd.HagedornWavepacket(eps, hd.ParameterSet(q = 0.5, p = 0.5), shape)

    M = hd.InhomogeneousInnerProduct(hd.GaussHermiteQR(30)).build_matrix(bra, ket)

    assert abs(M[0,0]) == pytest.approx(np.exp(-0.5 / (4 * eps**2)), rel = 1e-10)


def test_inhomogeneous_adjoint(enumerator, make_parameters):
    shape_a = enumerator.generate(hd.HyperCubicShape([2, 3]))
    shape_b = enumerator.generate(hd.HyperbolicCutShape(2, 5))
    bra = hd.HagedornWavepacket(0.5, make_parameters(2, seed = 2, S = 0.1), shape_a)
    ket = hd.HagedornWavepacket(0.5, make_parameters(2, seed = 5, S = -0.3), shape_b)
    ip = hd.InhomogeneousInnerProduct(hd.GaussHermiteQR(12))

    M = ip.build_matrix(bra, ket)
    N = ip.build_matrix(ket, bra)

    assert M.shape == (6, shape_b.size())
    np.testing.assert_allclose(M, N.conj().T, atol = 1e-12)


def test_inhomogeneous_phase(cube_1d):
    eps = 0.5
    bra = hd.HagedornWavepacket(eps, hd.ParameterSet(), cube_1d)
    ket = hd.HagedornWavepacket(eps, hd.ParameterSet(S = 0.1), cube_1d)

    M = hd.InhomogeneousInnerProduct(hd.GaussHermiteQR(8)).build_matrix(bra, ket)
    np.testing.assert_allclose(M, np.exp(0.4j) * np.eye(6), atol = 1e-12)


def test_quadrature_of_normalized_packet(cube_2d, make_parameters):
    rng = np.random.default_rng(11)
    c = rng.standard_normal(12) + 1j * rng.standard_normal(12)
    c /= np.linalg.norm(c)
    packet = hd.HagedornWavepacket(0.3, make_parameters(2, seed = 4), cube_2d, c)

    ip = hd.HomogeneousInnerProduct(hd.GaussHermiteQR(10))
    assert ip.quadrature(packet) == pytest.approx(1.0, abs = 1e-10)

    ip = hd.InhomogeneousInnerProduct(hd.GaussHermiteQR(10))
    assert ip.quadrature(packet) == pytest.approx(1.0, abs = 1e-10)


def test_dimension_mismatch(cube_1d, cube_2d):
    bra = hd.HagedornWavepacket(0.5, hd.ParameterSet(D = 1), cube_1d)
    ket = hd.HagedornWavepacket(0.5, hd.ParameterSet(D = 2), cube_2d)
    ip = hd.InhomogeneousInnerProduct(hd.GaussHermiteQR(4))

    calls = []
    def op(x, pos):
        calls.append(1)
        return 1.0

    with pytest.raises(hd.DimensionMismatchError):
        ip.build_matrix(bra, ket, op)
    assert calls == []


def test_rule_dimension_mismatch(cube_1d):
    packet = hd.HagedornWavepacket(0.5, hd.ParameterSet(), cube_1d)
    qr = hd.tensor_product([hd.GaussHermiteQR(3)] * 2)

    with pytest.raises(hd.DimensionMismatchError):
        hd.HomogeneousInnerProduct(qr).build_matrix(packet)


def test_operator_size_mismatch(cube_1d):
    packet = hd.HagedornWavepacket(0.5, hd.ParameterSet(), cube_1d)
    ip = hd.HomogeneousInnerProduct(hd.GaussHermiteQR(4))

    with pytest.raises(hd.DimensionMismatchError):
        ip.build_matrix(packet, lambda x, pos: np.ones(3))


def test_operator_non_finite(cube_1d):
    packet = hd.HagedornWavepacket(0.5, hd.ParameterSet(), cube_1d)
    ip = hd.HomogeneousInnerProduct(hd.GaussHermiteQR(4))

    with pytest.raises(ValueError):
        ip.build_matrix(packet, lambda x, pos: np.full(x.shape[1], np.nan))


def test_eps_mismatch(cube_1d):
    bra = hd.HagedornWavepacket(0.5, hd.ParameterSet(), cube_1d)
    ket = hd.HagedornWavepacket(0.4, hd.ParameterSet(), cube_1d)

    with pytest.raises(ValueError):
        hd.InhomogeneousInnerProduct(hd.GaussHermiteQR(4)).build_matrix(bra, ket)


def test_printlevel(cube_1d, capsys):
    packet = hd.HagedornWavepacket(0.5, hd.ParameterSet(), cube_1d)
    hd.HomogeneousInnerProduct(hd.GaussHermiteQR(4), printlevel = 1).build_matrix(packet)

    assert "6 x 6" in capsys.readouterr().out


def test_homogeneous_rejects_growing_gaussian(cube_1d):
    # Im(P Q^-1) = -1
    packet = hd.HagedornWavepacket(0.5, hd.ParameterSet(P = -1j), cube_1d)

    with pytest.raises(hd.ParameterSetInvalidError):
        hd.HomogeneousInnerProduct(hd.GaussHermiteQR(6)).build_matrix(packet)
    with pytest.raises(hd.ParameterSetInvalidError):
        packet.parameters.transformation()


def test_inhomogeneous_rejects_degenerate_mixing(cube_1d):
    # The combined width Im(P_r Q_r^-1) + Im(P_c Q_c^-1) vanishes
    bra = hd.HagedornWavepacket(0.5, hd.ParameterSet(P = -1j), cube_1d)
    ket = hd.HagedornWavepacket(0.5, hd.ParameterSet(q = 0.1), cube_1d)
    ip = hd.InhomogeneousInnerProduct(hd.GaussHermiteQR(6))

    with pytest.raises(hd.ParameterSetInvalidError):
        ip.build_matrix(bra, ket)
    with pytest.raises(hd.ParameterSetInvalidError):
        ip.build_matrix(ket, bra)


def test_singular_node_transformation(enumerator):
    # det(Qs) = 1e-330 underflows to zero
    shape = enumerator.generate(hd.HyperCubicShape([1, 1, 1]))
    Pi = hd.ParameterSet(Q = 1e-110 * np.eye(3), P = 1e110j * np.eye(3))
    packet = hd.HagedornWavepacket(0.5, Pi, shape)

    with pytest.raises(hd.ParameterSetInvalidError):
        hd.HomogeneousInnerProduct(hd.GaussHermiteQR(2)).build_matrix(packet)


def test_non_finite_matrix(enumerator):
    # The momentum phase overflows at the quadrature nodes
    shape = enumerator.generate(hd.HyperCubicShape(2))
    packet = hd.HagedornWavepacket(1e-3, hd.ParameterSet(p = 1e307), shape)

    with np.errstate(all = 'ignore'):
        with pytest.raises(hd.ParameterSetInvalidError):
            hd.HomogeneousInnerProduct(hd.GaussHermiteQR(4)).build_matrix(packet)
        with pytest.raises(hd.ParameterSetInvalidError):
            hd.InhomogeneousInnerProduct(hd.GaussHermiteQR(4)).build_matrix(packet, packet)
