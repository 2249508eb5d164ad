"""Flat tensor primitive tests."""

import numpy as np

import asp_module_utility as util


class TestTensors:
    """Row-major 9 component tensors."""

    def test_eye(self):
        """Flat identity."""
        assert np.allclose(util.eye(), [1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0])
        assert util.eye(2).size == 4

    def test_matrix_vector(self):
        """Row-major product with a vector."""
        assert np.allclose(util.matrix_vector(np.arange(9.0), [1.0, 0.0, 2.0]), [4.0, 13.0, 22.0])

    def test_matrix_multiply_and_transpose(self):
        """Products and transposes stay flat."""
        a = np.arange(9.0)
        b = np.arange(9.0, 18.0)
        assert np.allclose(util.matrix_multiply(a, b), (a.reshape(3, 3) @ b.reshape(3, 3)).flatten())
        assert np.allclose(util.transpose(a), a.reshape(3, 3).T.flatten())

    def test_determinant_and_inverse(self):
        """Inverse of a flat tensor."""
        a = np.array([2.0, 1.0, 0.0, 0.0, 3.0, 1.0, 1.0, 0.0, 1.0])
        assert np.isclose(util.determinant(a), np.linalg.det(a.reshape(3, 3)))
        assert np.allclose(util.matrix_multiply(a, util.inverse(a)), util.eye())


class TestVectors:
    """Vector operations."""

    def test_dot_norm_cross(self):
        """Dot, norm and cross of small vectors."""
        assert util.dot([1.0, 2.0, 3.0], [4.0, 5.0, 6.0]) == 32.0
        assert np.isclose(util.norm([3.0, 4.0, 0.0]), 5.0)
        assert np.allclose(util.cross([1.0, 0.0, 0.0], [0.0, 1.0, 0.0]), [0.0, 0.0, 1.0])

    def test_contract_gradient(self):
        """grad_ijk v_k with the gradient stored at 9 i + 3 j + k."""
        grad = np.arange(13.0, 40.0)
        out = util.contract_gradient(grad, [1.0, 2.0, 3.0])
        assert np.allclose(out + np.arange(4.0, 13.0), [90.0, 109.0, 128.0, 147.0, 166.0, 185.0, 204.0, 223.0, 242.0])

    def test_gradient_dot_left(self):
        """v_j grad_ijk."""
        grad = np.zeros(27)
        grad[9 * 0 + 3 * 1 + 2] = 2.0
        out = util.gradient_dot_left(grad, [0.0, 5.0, 0.0])
        assert out.shape == (3, 3)
        assert out[0, 2] == 10.0
        assert np.count_nonzero(out) == 1

    def test_fuzzy_equals(self):
        """Absolute and relative tolerance."""
        assert util.fuzzy_equals(1.0 + 1e-8, 1.0)
        assert not util.fuzzy_equals(1.0 + 1e-4, 1.0)
        assert util.fuzzy_equals(1e-10, 0.0)
