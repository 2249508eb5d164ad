""" ASP

- Anisotropic Stochastic Particle (ASP) micromorphic constitutive kernel
- Storage scheme: second order tensors as flat 9X1 vectors
                                                    [a_11, a_12, a_13, a_21, a_22, a_23, a_31, a_32, a_33]
                  gradient of micro-deformation as a flat 27X1 vector
                                                    [chi_ij,k] stored at 9 * i + 3 * j + k
                  point clouds as flat 3NX1 vectors
                                                    [x_1, y_1, z_1, x_2, y_2, z_2, ...]

DEVELOPED AT:
                    COMPUTATIONAL GEOMECHANICS LABORATORY
                    DEPARTMENT OF CIVIL ENGINEERING
                    UNIVERSITY OF CALGARY, AB, CANADA
                    DIRECTOR: Prof. Richard Wan

DEVELOPED BY:
                    MAHDAD EGHBALIAN

MIT License

Copyright (c) 2022 Mahdad Eghbalian

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE.
"""

# import required modules
import sys
import numpy as np


class AspError(Exception):
    pass


class AspValidationError(AspError, ValueError):
    """ invalid input size or configuration value """
    def __init__(self, message, parameter='', value=None, suggestion=''):
        self.parameter = parameter  # name of the offending parameter
        self.value = value  # value that was passed in
        self.suggestion = suggestion  # how to fix it
        full_msg = message
        if suggestion:
            full_msg += ' -> suggestion: ' + suggestion
        super().__init__(full_msg)


class AspDependencyError(AspError):
    """ a getter found its slot empty and the setter it called failed """
    def __init__(self, getter, setter, cause):
        self.getter = getter
        self.setter = setter
        self.cause = cause
        super().__init__(getter + ': error when calling ' + setter + '\n  ' +
                         str(cause).replace('\n', '\n  '))

    @property
    def root_cause(self):
        cause = self.cause
        while isinstance(cause, AspDependencyError):
            cause = cause.cause
        return cause


class AspCycleError(AspError):
    pass


class AspStateError(AspError):
    pass


class AspUnsupportedError(AspError, NotImplementedError):
    pass


class AspConvergenceError(AspError, RuntimeError):
    def __init__(self, message, iterations=0, residual=0.0):
        self.iterations = iterations  # number of iterations performed
        self.residual = residual  # final residual
        super().__init__(message)


class AspHostError(AspError, RuntimeError):
    pass


class Particle:
    def __init__(self, radius, particle_parameters, surface_parameters, overlap_parameters=(1.0,)):
        if radius <= 0.0:
            raise AspValidationError('particle radius must be positive', parameter='radius', value=radius,
                                     suggestion='use a radius > 0')

        self.radius = float(radius)  # reference radius of the surrogate particle
        self.particle_parameters = np.array(particle_parameters, dtype=float)  # parameters of the particle kernel
        self.surface_parameters = np.array(surface_parameters, dtype=float)  # adhesion stiffnesses (p_n, p_t)
        self.overlap_parameters = np.array(overlap_parameters, dtype=float)  # overlap stiffness (k,)


class Kinematics:
    def __init__(self, previous_time=0.0, delta_time=0.0, temperature=0.0, previous_temperature=0.0,
                 deformation_gradient=None, previous_deformation_gradient=None, micro_deformation=None,
                 previous_micro_deformation=None, gradient_micro_deformation=None, previous_state_variables=()):
        eye = np.eye(3).flatten()
        self.previous_time = float(previous_time)
        self.delta_time = float(delta_time)
        self.temperature = float(temperature)
        self.previous_temperature = float(previous_temperature)
        self.deformation_gradient = _tensor(deformation_gradient, eye, 9, 'deformation_gradient')
        self.previous_deformation_gradient = _tensor(previous_deformation_gradient, eye, 9,
                                                     'previous_deformation_gradient')
        self.micro_deformation = _tensor(micro_deformation, eye, 9, 'micro_deformation')
        self.previous_micro_deformation = _tensor(previous_micro_deformation, eye, 9, 'previous_micro_deformation')
        self.gradient_micro_deformation = _tensor(gradient_micro_deformation, np.zeros(27), 27,
                                                  'gradient_micro_deformation')
        self.previous_state_variables = np.array(previous_state_variables, dtype=float)


class Solver:
    def __init__(self, num_local_particles=1, surface_element_count=1, tol_abs=1e-9, tol_rel=1e-9, maxit_overlap=100,
                 stpinfo=False, stream=None):
        if num_local_particles < 1:
            raise AspValidationError('at least one local particle is required', parameter='num_local_particles',
                                     value=num_local_particles)
        if surface_element_count < 1:
            raise AspValidationError('the sphere needs at least one element per cube edge',
                                     parameter='surface_element_count', value=surface_element_count,
                                     suggestion='use surface_element_count >= 1')

        self.num_local_particles = int(num_local_particles)  # number of local particles to assemble
        self.surface_element_count = int(surface_element_count)  # elements per cube edge of the unit sphere
        self.tol_abs = tol_abs  # absolute tolerance
        self.tol_rel = tol_rel  # relative tolerance
        self.maxit_overlap = maxit_overlap  # maximum number of iterations for the overlap projection
        self.stpinfo = stpinfo  # True(False) to print or not print the step info
        self.stream = stream  # output handle for step info and messages, sys.stdout when None

    def out(self):
        if self.stream is None:
            return sys.stdout
        return self.stream


def _tensor(value, default, size, name):
    if value is None:
        return default.copy()
    out = np.array(value, dtype=float).flatten()
    if out.size != size:
        raise AspValidationError(name + ' must have ' + str(size) + ' components. Found ' + str(out.size) + '.',
                                 parameter=name, value=value)
    return out


class DataStorage:
    def __init__(self, name):
        self.name = name
        self.present = False
        self.value = None
        self.pending = False  # the setter for this slot is running

    def has(self):
        return self.present

    def get(self):
        if not self.present:
            raise AspStateError('the value of ' + self.name + ' has not been set')
        return self.value

    def set(self, value):
        self.value = value
        self.present = True

    def clear(self):
        raise AspUnsupportedError('clear is not defined for the payload of ' + self.name)


class IntegerStorage(DataStorage):
    def set(self, value):
        super().set(int(value))

    def clear(self):
        self.present = False
        self.value = 0


class ScalarStorage(DataStorage):
    def set(self, value):
        super().set(float(value))

    def clear(self):
        self.present = False
        self.value = 0.0


class ArrayStorage(DataStorage):
    def set(self, value):
        value = np.array(value, dtype=float)
        value.flags.writeable = False
        super().set(value)

    def clear(self):
        self.present = False
        self.value = np.zeros(0)


class IndexStorage(ArrayStorage):
    def set(self, value):
        value = np.array(value, dtype=int)
        value.flags.writeable = False
        DataStorage.set(self, value)

    def clear(self):
        self.present = False
        self.value = np.zeros(0, dtype=int)


class MapStorage(DataStorage):
    def set(self, value):
        super().set(dict(value))

    def clear(self):
        self.present = False
        self.value = {}


class ListStorage(DataStorage):
    def set(self, value):
        super().set(list(value))

    def clear(self):
        self.present = False
        self.value = []
