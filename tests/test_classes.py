"""Configuration, memo slot and exception tests."""

import io

import pytest
import numpy as np

import asp_classes as cls


class TestParticle:
    """Particle parameter holder."""

    def test_values(self):
        """Parameters are stored as float arrays."""
        particle = cls.Particle(2.45, [1, 2], (12.3, 45.6))
        assert particle.radius == 2.45
        assert particle.particle_parameters.dtype == float
        assert np.allclose(particle.surface_parameters, [12.3, 45.6])
        assert np.allclose(particle.overlap_parameters, [1.0])

    def test_radius_must_be_positive(self):
        """A non-positive radius is rejected with a suggestion."""
        with pytest.raises(cls.AspValidationError) as excinfo:
            cls.Particle(0.0, [1.0, 1.0], [1.0, 1.0])
        assert excinfo.value.parameter == 'radius'
        assert 'suggestion' in str(excinfo.value)
        assert isinstance(excinfo.value, ValueError)


class TestKinematics:
    """Driver input holder."""

    def test_defaults(self):
        """Identity tensors and a zero gradient."""
        kin = cls.Kinematics()
        assert np.allclose(kin.deformation_gradient, np.eye(3).flatten())
        assert np.allclose(kin.micro_deformation, np.eye(3).flatten())
        assert np.allclose(kin.gradient_micro_deformation, np.zeros(27))
        assert kin.previous_state_variables.size == 0

    def test_matrix_input_is_flattened(self):
        """Tensors given as matrices are stored row-major."""
        kin = cls.Kinematics(deformation_gradient=np.arange(9).reshape(3, 3))
        assert np.allclose(kin.deformation_gradient, np.arange(9))

    def test_size_check(self):
        """Wrong tensor sizes are rejected."""
        with pytest.raises(cls.AspValidationError):
            cls.Kinematics(gradient_micro_deformation=np.zeros(9))


class TestSolver:
    """Solver options."""

    def test_defaults(self):
        """Default options and output stream."""
        slvr = cls.Solver()
        assert slvr.num_local_particles == 1
        assert slvr.surface_element_count == 1
        assert not slvr.stpinfo
        assert slvr.out() is not None

    def test_stream(self):
        """A configured stream is used for output."""
        stream = io.StringIO()
        assert cls.Solver(stream=stream).out() is stream

    @pytest.mark.parametrize("kwargs", [{'num_local_particles': 0}, {'surface_element_count': 0}])
    def test_invalid(self, kwargs):
        """Counts must be at least one."""
        with pytest.raises(cls.AspValidationError):
            cls.Solver(**kwargs)


class TestDataStorage:
    """Memo slots."""

    def test_presence(self):
        """A slot is absent until set."""
        slot = cls.ScalarStorage('x')
        assert not slot.has()
        with pytest.raises(cls.AspStateError):
            slot.get()
        slot.set(3)
        assert slot.has()
        assert slot.get() == 3.0

    @pytest.mark.parametrize("storage, value, empty", [
        (cls.IntegerStorage, 4, 0),
        (cls.ScalarStorage, 2.5, 0.0),
        (cls.MapStorage, {1: 2}, {}),
        (cls.ListStorage, [1, 2], []),
    ])
    def test_clear(self, storage, value, empty):
        """Clearing resets presence and the value."""
        slot = storage('x')
        slot.set(value)
        slot.clear()
        assert not slot.has()
        assert slot.value == empty

    def test_clear_array(self):
        """Arrays clear to an empty array."""
        slot = cls.ArrayStorage('x')
        slot.set([1.0, 2.0])
        slot.clear()
        assert not slot.has()
        assert slot.value.size == 0

    def test_array_is_read_only(self):
        """Stored arrays cannot be modified by the caller."""
        source = np.array([1.0, 2.0])
        slot = cls.ArrayStorage('x')
        slot.set(source)
        with pytest.raises(ValueError):
            slot.get()[0] = 5.0
        source[0] = 7.0
        assert slot.get()[0] == 1.0

    def test_index_storage(self):
        """Index arrays keep an integer type."""
        slot = cls.IndexStorage('x')
        slot.set([0, 1, 2])
        assert slot.get().dtype.kind == 'i'

    def test_base_clear_unsupported(self):
        """The untyped slot has no clearing rule."""
        slot = cls.DataStorage('x')
        slot.set(object())
        with pytest.raises(cls.AspUnsupportedError):
            slot.clear()
        assert issubclass(cls.AspUnsupportedError, NotImplementedError)


class TestErrors:
    """Exception hierarchy."""

    def test_dependency_error_text(self):
        """The message names getter, setter and cause."""
        cause = cls.AspValidationError('bad size')
        err = cls.AspDependencyError('get_x', 'set_x', cause)
        assert 'get_x' in str(err)
        assert 'set_x' in str(err)
        assert 'bad size' in str(err)

    def test_root_cause(self):
        """The chain is walked down to the first non-dependency error."""
        cause = cls.AspConvergenceError('no convergence', iterations=5, residual=1.0)
        inner = cls.AspDependencyError('get_a', 'set_a', cause)
        outer = cls.AspDependencyError('get_b', 'set_b', inner)
        assert outer.root_cause is cause
        assert outer.root_cause.iterations == 5

    def test_hierarchy(self):
        """All errors derive from the package root."""
        for err in (cls.AspValidationError, cls.AspDependencyError, cls.AspCycleError, cls.AspStateError,
                    cls.AspUnsupportedError, cls.AspConvergenceError, cls.AspHostError):
            assert issubclass(err, cls.AspError)
