"""Traction-separation and overlap kernel tests."""

import pytest
import numpy as np

import asp_module_traction as ts
from asp_classes import AspValidationError, AspConvergenceError


def central_difference(func, x, h=1e-4):
    x = np.asarray(x, dtype=float)
    columns = []
    for i in range(x.size):
        step = np.zeros(x.size)
        step[i] = h
        columns.append((np.asarray(func(x + step)) - np.asarray(func(x - step))) / (2.0 * h))
    return np.column_stack(columns)


class TestDecomposeVector:
    """Normal and tangential parts of a vector."""

    def test_parts(self):
        """The parts add up and the tangential part is orthogonal to n."""
        d = np.array([1.0, 2.0, 3.0])
        n = np.array([0.0, 0.6, 0.8])
        dn, dt = ts.decompose_vector(d, n)
        assert np.allclose(dn + dt, d)
        assert np.isclose(np.dot(dt, n), 0.0)
        assert np.allclose(dn, 3.6 * n)

    def test_unit_normal_required(self):
        """A normal that is not unit length is rejected."""
        with pytest.raises(AspValidationError):
            ts.decompose_vector([1.0, 2.0, 3.0], [1.0, 1.0, 0.0])

    def test_size_check(self):
        """Vectors must have three components."""
        with pytest.raises(AspValidationError):
            ts.decompose_vector([1.0, 2.0], [1.0, 0.0, 0.0])


class TestLinearTraction:
    """Linear traction-separation law."""

    def test_energy_and_traction(self):
        """Energy and traction from the normal and tangential stiffness."""
        dn = np.array([0.0, 0.0, 2.0])
        dt = np.array([1.0, 0.0, 0.0])
        assert np.isclose(ts.compute_linear_traction_energy(dn, dt, (3.0, 5.0)), 0.5 * (3.0 * 4.0 + 5.0))
        assert np.allclose(ts.compute_linear_traction(dn, dt, (3.0, 5.0)), [5.0, 0.0, 6.0])

    def test_energy_is_half_work_of_traction(self):
        """psi = 1/2 d . t."""
        d = np.array([1.0, 2.0, 3.0])
        n = np.array([4.0, 5.0, 6.0]) / np.sqrt(77.0)
        params = (12.3, 45.6)
        dn, dt = ts.decompose_vector(d, n)
        energy = ts.compute_linear_traction_energy(dn, dt, params)
        traction = ts.compute_linear_traction(dn, dt, params)
        assert np.isclose(energy, 0.5 * np.dot(d, traction))

    @pytest.mark.parametrize("params", [(1.0,), (1.0, 2.0, 3.0)])
    def test_parameter_count(self, params):
        """Exactly two parameters are required."""
        with pytest.raises(AspValidationError):
            ts.compute_linear_traction_energy(np.zeros(3), np.zeros(3), params)
        with pytest.raises(AspValidationError):
            ts.compute_linear_traction(np.zeros(3), np.zeros(3), params)


class TestCurrentDistance:
    """Current distance between the two contact points."""

    def _inputs(self):
        # a uniform gradient of 0.6 turns chi into the non-local 28..36 for the spacing (4, 5, 6)
        return dict(xi_1=np.array([1.0, 2.0, 3.0]), xi_2=np.array([4.0, 5.0, 6.0]), ref_d=np.array([7.0, 8.0, 9.0]),
                    f=np.arange(10.0, 19.0), chi=np.arange(19.0, 28.0), grad_chi=0.6 * np.ones(27))

    def test_value(self):
        """Literal inputs give the known distance."""
        assert np.allclose(ts.compute_current_distance(**self._inputs()), [482.0, 554.0, 626.0])

    @pytest.mark.parametrize("key", ['xi_1', 'xi_2', 'D', 'F', 'chi', 'grad_chi'])
    def test_jacobians(self, key):
        """Closed form jacobians against central differences."""
        inputs = self._inputs()
        names = {'D': 'ref_d', 'F': 'f'}
        name = names.get(key, key)

        def func(x):
            args = dict(inputs)
            args[name] = x
            return ts.compute_current_distance(**args)

        jac = ts.current_distance_jacobians(**inputs)[key]
        assert jac.shape == (3, inputs[name].size)
        assert np.allclose(jac, central_difference(func, inputs[name]), rtol=1e-6, atol=1e-5)


class TestParticleOverlap:
    """Projection of a local point onto the neighbour surface."""

    def _overlap(self, point, **kwargs):
        # neighbour centred at F.dx = (2, 0, 0) with semi-axes (1, 2.3, 2.3)
        chi = np.diag([1.5, 1.0, 1.0]).flatten()
        xi_1 = np.asarray(point) / np.array([1.5, 1.0, 1.0])
        return ts.compute_particle_overlap(xi_1, [2.0 / 1.1, 0.0, 0.0], 2.3, np.diag([1.1, 1.0, 1.0]).flatten(),
                                           chi, np.diag([1.0 / 2.3, 1.0, 1.0]).flatten(), np.zeros(27), **kwargs)

    def test_outside_is_zero(self):
        """Points outside the neighbour do not overlap."""
        assert np.allclose(self._overlap([0.0, 0.0, 1.0]), 0.0)

    @pytest.mark.parametrize("x, expected", [(1.5, -0.5), (1.65, -0.65)])
    def test_on_axis(self, x, expected):
        """Points on the axis project onto the near cap."""
        assert np.allclose(self._overlap([x, 0.0, 0.0]), [expected, 0.0, 0.0])

    def _ellipsoid_overlap(self, point, maxit=200):
        chi_2 = np.diag([1.0, 2.0, 3.0])
        return ts.compute_particle_overlap(point, np.zeros(3), 1.0, np.eye(3).flatten(), np.eye(3).flatten(),
                                           chi_2.flatten(), np.zeros(27), maxit=maxit), chi_2

    def test_closest_point_on_surface(self):
        """The projected point is on the surface and the overlap is along its normal."""
        point = np.array([0.1, 0.2, 0.3])
        overlap, chi_2 = self._ellipsoid_overlap(point)
        target = point + overlap
        inv = np.linalg.inv(chi_2)
        assert np.isclose(np.linalg.norm(inv @ target), 1.0)
        normal = inv.T @ inv @ target
        assert np.allclose(np.cross(normal, overlap), 0.0, atol=1e-8)

    def test_centre_projects_along_smallest_axis(self):
        """From the centre the nearest surface point lies on the shortest axis."""
        overlap, chi_2 = self._ellipsoid_overlap(np.zeros(3))
        assert np.isclose(np.linalg.norm(overlap), 1.0)
        assert np.allclose(overlap[1:], 0.0)

    def test_convergence_failure(self):
        """Running out of iterations raises."""
        with pytest.raises(AspConvergenceError) as excinfo:
            self._ellipsoid_overlap(np.array([0.1, 0.2, 0.3]), maxit=0)
        assert excinfo.value.iterations == 1
