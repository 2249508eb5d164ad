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
from asp_classes import (Solver, Kinematics, AspValidationError, AspDependencyError, AspCycleError, AspStateError,
                         IntegerStorage, ScalarStorage, ArrayStorage, IndexStorage, MapStorage, ListStorage)
import asp_module_utility as util
import asp_module_surface as surf
import asp_module_traction as ts
import numpy as np


# memo slots of the evaluation graph and their payload types
slot_types = {
    # local particle
    'local_reference_radius': ScalarStorage,
    'unit_sphere_points': ArrayStorage,
    'unit_sphere_connectivity': IndexStorage,
    'num_surface_points': IntegerStorage,
    'local_reference_surface_points': ArrayStorage,
    'local_deformation_gradient': ArrayStorage,
    'previous_local_deformation_gradient': ArrayStorage,
    'local_micro_deformation': ArrayStorage,
    'previous_local_micro_deformation': ArrayStorage,
    'local_gradient_micro_deformation': ArrayStorage,
    'local_current_surface_points': ArrayStorage,
    'local_particle_current_bounding_box': ArrayStorage,
    'local_particle_parameters': ArrayStorage,
    'local_particle_energy_density': ScalarStorage,
    'local_particle_micro_cauchy_stress': ArrayStorage,
    'local_particle_state_variables': ArrayStorage,
    'local_particle_log_probability_ratio': ScalarStorage,
    'local_particle_energy': ScalarStorage,
    'local_particle_reference_volume': ScalarStorage,
    'local_particle_current_volume': ScalarStorage,
    # surface point
    'local_reference_normal': ArrayStorage,
    'local_surface_reference_relative_position_vector': ArrayStorage,
    'local_current_normal': ArrayStorage,
    'dlocal_current_normal_dlocal_reference_normal': ArrayStorage,
    'dlocal_current_normal_dlocal_micro_deformation': ArrayStorage,
    # interaction pair
    'non_local_reference_radius': ScalarStorage,
    'non_local_reference_surface_points': ArrayStorage,
    'non_local_surface_reference_relative_position_vector': ArrayStorage,
    'reference_distance_vector': ArrayStorage,
    'local_reference_particle_spacing_vector': ArrayStorage,
    'non_local_micro_deformation_base': ArrayStorage,
    'non_local_micro_deformation': ArrayStorage,
    'non_local_current_surface_points': ArrayStorage,
    'non_local_particle_current_bounding_box': ArrayStorage,
    'current_distance_vector': ArrayStorage,
    'surface_parameters': ArrayStorage,
    'surface_overlap_parameters': ArrayStorage,
    'surface_adhesion_energy_density': ScalarStorage,
    'surface_adhesion_traction': ArrayStorage,
    'surface_adhesion_thickness': ScalarStorage,
    'dsurface_adhesion_energy_density_dlocal_deformation_gradient': ArrayStorage,
    'dsurface_adhesion_energy_density_dlocal_micro_deformation': ArrayStorage,
    'dsurface_adhesion_energy_density_dgradient_micro_deformation': ArrayStorage,
    'particle_pair_overlap': MapStorage,
    'surface_overlap_energy_density': MapStorage,
    'surface_overlap_traction': MapStorage,
    'surface_overlap_thickness': MapStorage,
    'dnon_local_micro_deformation_dlocal_reference_relative_position_vector': ArrayStorage,
    'dnon_local_micro_deformation_dnon_local_reference_relative_position_vector': ArrayStorage,
    'dnon_local_micro_deformation_dlocal_reference_distance_vector': ArrayStorage,
    'dnon_local_micro_deformation_dnon_local_micro_deformation_base': ArrayStorage,
    'dnon_local_micro_deformation_dgradient_micro_deformation': ArrayStorage,
    'd2non_local_micro_deformation_dlocal_reference_relative_position_vector_dgradient_micro_deformation':
        ArrayStorage,
    'd2non_local_micro_deformation_dnon_local_reference_relative_position_vector_dgradient_micro_deformation':
        ArrayStorage,
    'd2non_local_micro_deformation_dlocal_reference_distance_vector_dgradient_micro_deformation': ArrayStorage,
    'dcurrent_distance_vector_dlocal_reference_relative_position_vector': ArrayStorage,
    'dcurrent_distance_vector_dnon_local_reference_relative_position_vector': ArrayStorage,
    'dcurrent_distance_vector_dlocal_reference_distance_vector': ArrayStorage,
    'dcurrent_distance_vector_dlocal_deformation_gradient': ArrayStorage,
    'dcurrent_distance_vector_dlocal_micro_deformation': ArrayStorage,
    'dcurrent_distance_vector_dnon_local_micro_deformation_base': ArrayStorage,
    'dcurrent_distance_vector_dgradient_micro_deformation': ArrayStorage,
    'd2current_distance_vector_dnon_local_reference_relative_position_vector_dlocal_reference_relative_position_vector':
        ArrayStorage,
    'd2current_distance_vector_dlocal_deformation_gradient_dlocal_reference_relative_position_vector': ArrayStorage,
    'd2current_distance_vector_dlocal_micro_deformation_dlocal_reference_relative_position_vector': ArrayStorage,
    'd2current_distance_vector_dgradient_micro_deformation_dlocal_reference_relative_position_vector': ArrayStorage,
    'd2current_distance_vector_dnon_local_reference_relative_position_vector_dlocal_reference_distance_vector':
        ArrayStorage,
    'd2current_distance_vector_dlocal_deformation_gradient_dlocal_reference_distance_vector': ArrayStorage,
    'd2current_distance_vector_dgradient_micro_deformation_dlocal_reference_distance_vector': ArrayStorage,
    'd2current_distance_vector_dnon_local_reference_relative_position_vector_dnon_local_reference_relative_position_vector':
        ArrayStorage,
    'd2current_distance_vector_dlocal_deformation_gradient_dnon_local_reference_relative_position_vector':
        ArrayStorage,
    'd2current_distance_vector_dnon_local_micro_deformation_base_dnon_local_reference_relative_position_vector':
        ArrayStorage,
    'd2current_distance_vector_dgradient_micro_deformation_dnon_local_reference_relative_position_vector':
        ArrayStorage,
    # assembled over all particles, never registered
    'assembled_local_particle_energies': ArrayStorage,
    'assembled_local_particle_micro_cauchy_stresses': ArrayStorage,
    'assembled_local_particle_volumes': ArrayStorage,
    'assembled_local_particle_log_probability_ratios': ArrayStorage,
    'assembled_surface_adhesion_energy_densities': ListStorage,
    'assembled_surface_adhesion_tractions': ListStorage,
    'assembled_surface_adhesion_thicknesses': ListStorage,
    'assembled_surface_overlap_energy_densities': ListStorage,
    'assembled_surface_overlap_tractions': ListStorage,
    'assembled_surface_overlap_thicknesses': ListStorage,
    'assembled_surface_adhesion_energies': ArrayStorage,
}


def print_step(slvr, label, index):
    if slvr.stpinfo:
        print("====" + label + " " + str(index + 1), file=slvr.out())


def form_bounding_box(points, dim=3):
    points = np.asarray(points, dtype=float).flatten()
    if points.size % dim != 0 or points.size == 0:
        raise AspValidationError('the points vector must hold at least one point and have a length that is a '
                                 'multiple of ' + str(dim) + '. Found ' + str(points.size) + '.',
                                 parameter='points', value=points.size)

    pts = np.reshape(points, (-1, dim))
    box = np.column_stack([np.min(pts, axis=0), np.max(pts, axis=0)])
    return box


def point_in_bounding_box(point, box):
    point = np.asarray(point, dtype=float).flatten()
    if point.size != len(box):
        raise AspValidationError('point and bounding box must be the same size. point: ' + str(point.size) +
                                 ' bounding box: ' + str(len(box)), parameter='point', value=point.size)

    for i in range(point.size):
        if len(box[i]) != 2:
            raise AspValidationError('bounding box row ' + str(i) + ' has a length of ' + str(len(box[i])) +
                                     ' and it should be of length 2', parameter='box', value=len(box[i]))

        if point[i] < box[i][0] or point[i] > box[i][1]:
            return False

    return True


def id_bounding_box_contained_points(points, box, dim=3):
    points = np.asarray(points, dtype=float).flatten()
    contained = [i // dim for i in range(0, points.size, dim) if point_in_bounding_box(points[i: i + dim], box)]
    return contained


def linear_elasticity_kernel(previous_time, delta_time, micro_deformation, previous_micro_deformation, temperature,
                             previous_temperature, previous_state_variables, parameters):
    """ default local particle kernel

    linear elastic response of the micro-deformation with parameters (lambda, mu). the energy density is per unit
    reference volume, the micro-Cauchy stress lives in the current configuration. state variables are passed
    through unchanged.
    """
    parameters = np.asarray(parameters, dtype=float).flatten()
    if parameters.size != 2:
        raise AspValidationError('the linear elastic kernel requires 2 parameters (lambda, mu). Found ' +
                                 str(parameters.size) + '.', parameter='parameters', value=parameters.size)
    lmbda, mu = parameters

    chi = util.tomatrix(micro_deformation)
    jac = np.linalg.det(chi)
    green = 0.5 * (np.matmul(chi.T, chi) - np.eye(3))
    tr_e = np.trace(green)

    energy_density = 0.5 * lmbda * tr_e ** 2 + mu * np.sum(green * green)
    pk2 = lmbda * tr_e * np.eye(3) + 2.0 * mu * green
    cauchy = np.matmul(chi, np.matmul(pk2, chi.T)) / jac

    return float(energy_density), cauchy.flatten(), np.array(previous_state_variables, dtype=float)


class AspBase:
    """ evaluation graph of the anisotropic stochastic particle

    every derived quantity is held in a memo slot. a getter returns the slot value if present and otherwise calls
    the setter, which computes the value from other getters, stores it and registers the slot in the list of its
    context (local particle, surface point or interaction pair). moving a context cursor clears the slots of that
    context and of all finer ones.
    """

    def __init__(self, particle, kinematics=None, slvr=None, kernel=None, normal_source=None):
        if kinematics is None:
            kinematics = Kinematics()
        if slvr is None:
            slvr = Solver()
        if kernel is None:
            kernel = linear_elasticity_kernel

        self.particle = particle
        self.kinematics = kinematics
        self.slvr = slvr
        self.kernel = kernel  # local particle constitutive kernel
        self.normal_source = normal_source  # callable index -> reference normal, unit sphere when None

        self._dimension = 3
        self._local_index = 0
        self._non_local_index = 0
        self._local_surface_node_index = 0

        self._data = {name: storage(name) for name, storage in slot_types.items()}

        self._local_particle_data = []
        self._surface_point_data = []
        self._interaction_pair_data = []

    # ==================== memo machinery
    def _fetch(self, name, setter):
        slot = self._data[name]
        if slot.has():
            return slot.get()

        if slot.pending:
            raise AspCycleError('get_' + name + ' was requested while its setter ' + setter.__name__ +
                                ' is still running')

        slot.pending = True
        try:
            setter()
        except Exception as err:
            raise AspDependencyError('get_' + name, setter.__name__, err) from err
        finally:
            slot.pending = False

        if not slot.has():
            raise AspStateError(setter.__name__ + ' did not set ' + name)

        return slot.get()

    def slot(self, name):
        return self._data[name]

    def register_local_particle_slot(self, slot):
        if slot not in self._local_particle_data:
            self._local_particle_data.append(slot)

    def register_surface_point_slot(self, slot):
        if slot not in self._surface_point_data:
            self._surface_point_data.append(slot)

    def register_interaction_pair_slot(self, slot):
        if slot not in self._interaction_pair_data:
            self._interaction_pair_data.append(slot)

    def _set_local_particle(self, name, value):
        self._data[name].set(value)
        self.register_local_particle_slot(self._data[name])

    def _set_surface_point(self, name, value):
        self._data[name].set(value)
        self.register_surface_point_slot(self._data[name])

    def _set_interaction_pair(self, name, value):
        self._data[name].set(value)
        self.register_interaction_pair_slot(self._data[name])

    def reset_interaction_pair_data(self):
        for slot in self._interaction_pair_data:
            slot.clear()
        self._interaction_pair_data = []

    def reset_surface_point_data(self):
        self.reset_interaction_pair_data()
        for slot in self._surface_point_data:
            slot.clear()
        self._surface_point_data = []

    def reset_local_particle_data(self):
        self.reset_surface_point_data()
        for slot in self._local_particle_data:
            slot.clear()
        self._local_particle_data = []

    # ==================== context cursors
    def get_local_index(self):
        return self._local_index

    def get_non_local_index(self):
        return self._non_local_index

    def get_local_surface_node_index(self):
        return self._local_surface_node_index

    def set_local_index(self, index):
        if index != self._local_index:
            self.reset_local_particle_data()
        self._local_index = index

    def set_local_surface_node_index(self, index):
        if index != self._local_surface_node_index:
            self.reset_surface_point_data()
        self._local_surface_node_index = index

    def set_non_local_index(self, index):
        if index != self._non_local_index:
            self.reset_interaction_pair_data()
        self._non_local_index = index

    # ==================== driver inputs
    def get_dimension(self):
        return self._dimension

    def get_num_local_particles(self):
        return self.slvr.num_local_particles

    def get_absolute_tolerance(self):
        return self.slvr.tol_abs

    def get_relative_tolerance(self):
        return self.slvr.tol_rel

    def get_radius(self):
        return self.particle.radius

    def get_previous_time(self):
        return self.kinematics.previous_time

    def get_delta_time(self):
        return self.kinematics.delta_time

    def get_temperature(self):
        return self.kinematics.temperature

    def get_previous_temperature(self):
        return self.kinematics.previous_temperature

    def get_deformation_gradient(self):
        return self.kinematics.deformation_gradient

    def get_previous_deformation_gradient(self):
        return self.kinematics.previous_deformation_gradient

    def get_micro_deformation(self):
        return self.kinematics.micro_deformation

    def get_previous_micro_deformation(self):
        return self.kinematics.previous_micro_deformation

    def get_gradient_micro_deformation(self):
        return self.kinematics.gradient_micro_deformation

    def get_previous_state_variables(self):
        return self.kinematics.previous_state_variables

    def get_previous_local_state_variables(self):
        return self.get_previous_state_variables()

    def get_particle_parameters(self):
        return self.particle.particle_parameters

    # ==================== local particle fields
    def set_local_reference_radius(self):
        self._set_local_particle('local_reference_radius', self.get_radius())

    def get_local_reference_radius(self):
        return self._fetch('local_reference_radius', self.set_local_reference_radius)

    def initialize_unit_sphere(self):
        points, conn = surf.decompose_sphere(1.0, self.slvr.surface_element_count)
        self._set_local_particle('unit_sphere_points', points)
        self._set_local_particle('unit_sphere_connectivity', conn)

    def get_unit_sphere_points(self):
        return self._fetch('unit_sphere_points', self.initialize_unit_sphere)

    def get_unit_sphere_connectivity(self):
        return self._fetch('unit_sphere_connectivity', self.initialize_unit_sphere)

    def set_num_surface_points(self):
        self._set_local_particle('num_surface_points', self.get_unit_sphere_points().size // self._dimension)

    def get_num_surface_points(self):
        return self._fetch('num_surface_points', self.set_num_surface_points)

    def set_local_reference_surface_points(self):
        self._set_local_particle('local_reference_surface_points',
                                 self.get_local_reference_radius() * self.get_unit_sphere_points())

    def get_local_reference_surface_points(self):
        return self._fetch('local_reference_surface_points', self.set_local_reference_surface_points)

    def set_local_deformation_gradient(self):
        self._set_local_particle('local_deformation_gradient', self.get_deformation_gradient())

    def get_local_deformation_gradient(self):
        return self._fetch('local_deformation_gradient', self.set_local_deformation_gradient)

    def set_previous_local_deformation_gradient(self):
        self._set_local_particle('previous_local_deformation_gradient', self.get_previous_deformation_gradient())

    def get_previous_local_deformation_gradient(self):
        return self._fetch('previous_local_deformation_gradient', self.set_previous_local_deformation_gradient)

    def set_local_micro_deformation(self):
        self._set_local_particle('local_micro_deformation', self.get_micro_deformation())

    def get_local_micro_deformation(self):
        return self._fetch('local_micro_deformation', self.set_local_micro_deformation)

    def set_previous_local_micro_deformation(self):
        self._set_local_particle('previous_local_micro_deformation', self.get_previous_micro_deformation())

    def get_previous_local_micro_deformation(self):
        return self._fetch('previous_local_micro_deformation', self.set_previous_local_micro_deformation)

    def set_local_gradient_micro_deformation(self):
        self._set_local_particle('local_gradient_micro_deformation', self.get_gradient_micro_deformation())

    def get_local_gradient_micro_deformation(self):
        return self._fetch('local_gradient_micro_deformation', self.set_local_gradient_micro_deformation)

    def set_local_current_surface_points(self):
        chi = util.tomatrix(self.get_local_micro_deformation())
        points = np.reshape(self.get_local_reference_surface_points(), (-1, 3))
        self._set_local_particle('local_current_surface_points', np.matmul(points, chi.T).flatten())

    def get_local_current_surface_points(self):
        return self._fetch('local_current_surface_points', self.set_local_current_surface_points)

    def set_local_particle_current_bounding_box(self):
        self._set_local_particle('local_particle_current_bounding_box',
                                 form_bounding_box(self.get_local_current_surface_points(), self._dimension))

    def get_local_particle_current_bounding_box(self):
        return self._fetch('local_particle_current_bounding_box', self.set_local_particle_current_bounding_box)

    def set_local_particle_parameters(self):
        self._set_local_particle('local_particle_parameters', self.get_particle_parameters())

    def get_local_particle_parameters(self):
        return self._fetch('local_particle_parameters', self.set_local_particle_parameters)

    def set_local_particle_quantities(self):
        """ call the kernel for the energy density, micro-Cauchy stress, state variables and log probability ratio """
        chi = self.get_local_micro_deformation()
        result = self.kernel(self.get_previous_time(), self.get_delta_time(), chi,
                             self.get_previous_local_micro_deformation(), self.get_temperature(),
                             self.get_previous_temperature(), self.get_previous_local_state_variables(),
                             self.get_local_particle_parameters())

        if len(result) == 3:
            energy_density, stress, state_variables = result
            log_probability_ratio = 0.0
        else:
            energy_density, stress, state_variables, log_probability_ratio = result

        stress = np.asarray(stress, dtype=float).flatten()
        if stress.size != chi.size:
            raise AspValidationError('the micro-Cauchy stress has ' + str(stress.size) + ' components but the '
                                     'micro-deformation has ' + str(chi.size), parameter='stress', value=stress.size)

        self._set_local_particle('local_particle_energy_density', energy_density)
        self._set_local_particle('local_particle_micro_cauchy_stress', stress)
        self._set_local_particle('local_particle_state_variables', state_variables)
        self._set_local_particle('local_particle_log_probability_ratio', log_probability_ratio)

    def get_local_particle_energy_density(self):
        return self._fetch('local_particle_energy_density', self.set_local_particle_quantities)

    def get_local_particle_micro_cauchy_stress(self):
        return self._fetch('local_particle_micro_cauchy_stress', self.set_local_particle_quantities)

    def get_local_particle_state_variables(self):
        return self._fetch('local_particle_state_variables', self.set_local_particle_quantities)

    def get_local_particle_log_probability_ratio(self):
        return self._fetch('local_particle_log_probability_ratio', self.set_local_particle_quantities)

    def set_local_particle_reference_volume(self):
        radius = self.get_local_reference_radius()
        self._set_local_particle('local_particle_reference_volume', 4.0 / 3.0 * np.pi * radius ** 3)

    def get_local_particle_reference_volume(self):
        return self._fetch('local_particle_reference_volume', self.set_local_particle_reference_volume)

    def set_local_particle_current_volume(self):
        jac = util.determinant(self.get_local_micro_deformation())
        self._set_local_particle('local_particle_current_volume', jac * self.get_local_particle_reference_volume())

    def get_local_particle_current_volume(self):
        return self._fetch('local_particle_current_volume', self.set_local_particle_current_volume)

    def set_local_particle_energy(self):
        self._set_local_particle('local_particle_energy',
                                 self.get_local_particle_reference_volume() * self.get_local_particle_energy_density())

    def get_local_particle_energy(self):
        return self._fetch('local_particle_energy', self.set_local_particle_energy)

    # ==================== surface point fields
    def local_reference_normal_at(self, index):
        if self.normal_source is not None:
            return np.asarray(self.normal_source(index), dtype=float).flatten()

        n_points = self.get_num_surface_points()
        if index < 0 or index >= n_points:
            raise AspValidationError('surface node ' + str(index) + ' is out of range for ' + str(n_points) +
                                     ' surface points', parameter='index', value=index)

        point = self.get_unit_sphere_points()[3 * index: 3 * index + 3]
        return point / util.norm(point)

    def local_current_normal_at(self, index):
        return self._current_normal(self.local_reference_normal_at(index), self.get_local_micro_deformation())

    def _current_normal(self, normal, chi):
        # Nanson's relation, n da = J chi^-T N dA
        m = np.matmul(util.tomatrix(util.inverse(chi)).T, normal)
        return m / util.norm(m)

    def set_local_reference_normal(self):
        self._set_surface_point('local_reference_normal', self.local_reference_normal_at(self._local_surface_node_index))

    def get_local_reference_normal(self):
        return self._fetch('local_reference_normal', self.set_local_reference_normal)

    def set_local_surface_reference_relative_position_vector(self):
        self._set_surface_point('local_surface_reference_relative_position_vector',
                                self.get_local_reference_radius() * self.get_local_reference_normal())

    def get_local_surface_reference_relative_position_vector(self):
        return self._fetch('local_surface_reference_relative_position_vector',
                           self.set_local_surface_reference_relative_position_vector)

    def set_local_current_normal(self):
        self._set_surface_point('local_current_normal',
                                self._current_normal(self.get_local_reference_normal(),
                                                     self.get_local_micro_deformation()))

    def get_local_current_normal(self):
        return self._fetch('local_current_normal', self.set_local_current_normal)

    def set_local_current_normal_derivatives(self):
        normal = self.get_local_reference_normal()
        chi_inv = util.tomatrix(util.inverse(self.get_local_micro_deformation()))
        m = np.matmul(chi_inv.T, normal)
        n = m / util.norm(m)
        proj = (np.eye(3) - np.outer(n, n)) / util.norm(m)

        # dm_i / dchi_AB = -m_A chi^-1_Bi
        dmdchi = -np.einsum('A,Bi->iAB', m, chi_inv).reshape(3, 9)

        self._set_surface_point('dlocal_current_normal_dlocal_reference_normal', np.matmul(proj, chi_inv.T))
        self._set_surface_point('dlocal_current_normal_dlocal_micro_deformation', np.matmul(proj, dmdchi))

    def get_dlocal_current_normal_dlocal_reference_normal(self):
        return self._fetch('dlocal_current_normal_dlocal_reference_normal', self.set_local_current_normal_derivatives)

    def get_dlocal_current_normal_dlocal_micro_deformation(self):
        return self._fetch('dlocal_current_normal_dlocal_micro_deformation', self.set_local_current_normal_derivatives)

    # ==================== interaction pair fields
    def set_non_local_reference_radius(self):
        self._set_interaction_pair('non_local_reference_radius', self.get_radius())

    def get_non_local_reference_radius(self):
        return self._fetch('non_local_reference_radius', self.set_non_local_reference_radius)

    def set_non_local_reference_surface_points(self):
        self._set_interaction_pair('non_local_reference_surface_points',
                                   self.get_non_local_reference_radius() * self.get_unit_sphere_points())

    def get_non_local_reference_surface_points(self):
        return self._fetch('non_local_reference_surface_points', self.set_non_local_reference_surface_points)

    def set_non_local_surface_reference_relative_position_vector(self):
        # the non-local particle touches the local one at the same surface point, seen from its own centre the
        # contact point lies opposite to the local normal
        self._set_interaction_pair('non_local_surface_reference_relative_position_vector',
                                   -self.get_non_local_reference_radius() * self.get_local_reference_normal())

    def get_non_local_surface_reference_relative_position_vector(self):
        return self._fetch('non_local_surface_reference_relative_position_vector',
                           self.set_non_local_surface_reference_relative_position_vector)

    def set_reference_distance_vector(self):
        self._set_interaction_pair('reference_distance_vector', np.zeros(self._dimension))

    def get_reference_distance_vector(self):
        return self._fetch('reference_distance_vector', self.set_reference_distance_vector)

    def set_local_reference_particle_spacing_vector(self):
        spacing = self.get_local_surface_reference_relative_position_vector() + self.get_reference_distance_vector() \
            - self.get_non_local_surface_reference_relative_position_vector()
        self._set_interaction_pair('local_reference_particle_spacing_vector', spacing)

    def get_local_reference_particle_spacing_vector(self):
        return self._fetch('local_reference_particle_spacing_vector',
                           self.set_local_reference_particle_spacing_vector)

    def set_non_local_micro_deformation_base(self):
        self._set_interaction_pair('non_local_micro_deformation_base', self.get_micro_deformation())

    def get_non_local_micro_deformation_base(self):
        return self._fetch('non_local_micro_deformation_base', self.set_non_local_micro_deformation_base)

    def set_non_local_micro_deformation(self):
        chi_nl = self.get_non_local_micro_deformation_base() + \
            util.contract_gradient(self.get_local_gradient_micro_deformation(),
                                   self.get_local_reference_particle_spacing_vector())
        self._set_interaction_pair('non_local_micro_deformation', chi_nl)

    def get_non_local_micro_deformation(self):
        return self._fetch('non_local_micro_deformation', self.set_non_local_micro_deformation)

    def set_non_local_current_surface_points(self):
        chi = util.tomatrix(self.get_non_local_micro_deformation())
        points = np.reshape(self.get_non_local_reference_surface_points(), (-1, 3))
        self._set_interaction_pair('non_local_current_surface_points', np.matmul(points, chi.T).flatten())

    def get_non_local_current_surface_points(self):
        return self._fetch('non_local_current_surface_points', self.set_non_local_current_surface_points)

    def set_non_local_particle_current_bounding_box(self):
        self._set_interaction_pair('non_local_particle_current_bounding_box',
                                   form_bounding_box(self.get_non_local_current_surface_points(), self._dimension))

    def get_non_local_particle_current_bounding_box(self):
        return self._fetch('non_local_particle_current_bounding_box', self.set_non_local_particle_current_bounding_box)

    def set_current_distance_vector(self):
        # non-local contact point minus local contact point, both measured from the local centre
        d = util.matrix_vector(self.get_local_deformation_gradient(), self.get_local_reference_particle_spacing_vector()) \
            - util.matrix_vector(self.get_local_micro_deformation(),
                                 self.get_local_surface_reference_relative_position_vector()) \
            + util.matrix_vector(self.get_non_local_micro_deformation(),
                                 self.get_non_local_surface_reference_relative_position_vector())
        self._set_interaction_pair('current_distance_vector', d)

    def get_current_distance_vector(self):
        return self._fetch('current_distance_vector', self.set_current_distance_vector)

    def set_surface_parameters(self):
        self._set_interaction_pair('surface_parameters', self.particle.surface_parameters)

    def get_surface_parameters(self):
        return self._fetch('surface_parameters', self.set_surface_parameters)

    def set_surface_overlap_parameters(self):
        self._set_interaction_pair('surface_overlap_parameters', self.particle.overlap_parameters)

    def get_surface_overlap_parameters(self):
        return self._fetch('surface_overlap_parameters', self.set_surface_overlap_parameters)

    # ==================== adhesion
    def _decompose_current_distance(self):
        return ts.decompose_vector(self.get_current_distance_vector(), self.get_local_current_normal(),
                                   self.get_relative_tolerance(), self.get_absolute_tolerance())

    def set_surface_adhesion_energy_density(self):
        dn, dt = self._decompose_current_distance()
        energy = ts.compute_linear_traction_energy(dn, dt, self.get_surface_parameters())

        # energy per unit current area of a bonding layer of thickness |dn|
        self._set_interaction_pair('surface_adhesion_energy_density', 0.5 * energy * util.norm(dn))

    def get_surface_adhesion_energy_density(self):
        return self._fetch('surface_adhesion_energy_density', self.set_surface_adhesion_energy_density)

    def set_surface_adhesion_traction(self):
        dn, dt = self._decompose_current_distance()
        self._set_interaction_pair('surface_adhesion_traction',
                                   ts.compute_linear_traction(dn, dt, self.get_surface_parameters()))

    def get_surface_adhesion_traction(self):
        return self._fetch('surface_adhesion_traction', self.set_surface_adhesion_traction)

    def set_surface_adhesion_thickness(self):
        dn, dt = self._decompose_current_distance()
        self._set_interaction_pair('surface_adhesion_thickness', util.norm(dn))

    def get_surface_adhesion_thickness(self):
        return self._fetch('surface_adhesion_thickness', self.set_surface_adhesion_thickness)

    def set_surface_adhesion_energy_density_derivatives(self):
        d = self.get_current_distance_vector()
        n = self.get_local_current_normal()
        dn, dt = self._decompose_current_distance()
        energy = ts.compute_linear_traction_energy(dn, dt, self.get_surface_parameters())
        traction = ts.compute_linear_traction(dn, dt, self.get_surface_parameters())
        en, et = self.get_surface_parameters()

        a = util.dot(d, n)
        sign = np.sign(a)
        dedd = 0.5 * (traction * abs(a) + energy * sign * n)
        dedn = 0.5 * ((en - et) * a * abs(a) * d + energy * sign * d)

        dddchi = self.get_dcurrent_distance_vector_dlocal_micro_deformation() + \
            self.get_dcurrent_distance_vector_dnon_local_micro_deformation_base()

        self._set_interaction_pair('dsurface_adhesion_energy_density_dlocal_deformation_gradient',
                                   np.matmul(dedd, self.get_dcurrent_distance_vector_dlocal_deformation_gradient()))
        self._set_interaction_pair('dsurface_adhesion_energy_density_dlocal_micro_deformation',
                                   np.matmul(dedd, dddchi) +
                                   np.matmul(dedn, self.get_dlocal_current_normal_dlocal_micro_deformation()))
        self._set_interaction_pair('dsurface_adhesion_energy_density_dgradient_micro_deformation',
                                   np.matmul(dedd, self.get_dcurrent_distance_vector_dgradient_micro_deformation()))

    def get_dsurface_adhesion_energy_density_dlocal_deformation_gradient(self):
        return self._fetch('dsurface_adhesion_energy_density_dlocal_deformation_gradient',
                           self.set_surface_adhesion_energy_density_derivatives)

    def get_dsurface_adhesion_energy_density_dlocal_micro_deformation(self):
        return self._fetch('dsurface_adhesion_energy_density_dlocal_micro_deformation',
                           self.set_surface_adhesion_energy_density_derivatives)

    def get_dsurface_adhesion_energy_density_dgradient_micro_deformation(self):
        return self._fetch('dsurface_adhesion_energy_density_dgradient_micro_deformation',
                           self.set_surface_adhesion_energy_density_derivatives)

    # ==================== overlap
    def set_particle_pair_overlap(self):
        box = self.get_non_local_particle_current_bounding_box()
        reference_points = self.get_local_reference_surface_points()
        current_points = self.get_local_current_surface_points()
        spacing = self.get_local_reference_particle_spacing_vector()
        radius = self.get_non_local_reference_radius()
        f = self.get_local_deformation_gradient()
        chi = self.get_local_micro_deformation()
        chi_base = self.get_non_local_micro_deformation_base()
        grad_chi = self.get_local_gradient_micro_deformation()

        overlap = {}
        for p in id_bounding_box_contained_points(current_points, box, self._dimension):
            overlap[p] = ts.compute_particle_overlap(reference_points[3 * p: 3 * p + 3], spacing, radius, f, chi,
                                                     chi_base, grad_chi, tol=self.get_absolute_tolerance() * 1e-3,
                                                     maxit=self.slvr.maxit_overlap)

        self._set_interaction_pair('particle_pair_overlap', overlap)

    def get_particle_pair_overlap(self):
        return self._fetch('particle_pair_overlap', self.set_particle_pair_overlap)

    def _overlap_stiffness(self):
        parameters = self.get_surface_overlap_parameters()
        if parameters.size != 1:
            raise AspValidationError('one surface overlap parameter is required. Found ' + str(parameters.size) + '.',
                                     parameter='overlap_parameters', value=parameters.size)
        return parameters[0]

    def set_surface_overlap_energy_density(self):
        k = self._overlap_stiffness()
        energy = {}
        for index, overlap in self.get_particle_pair_overlap().items():
            normal = self.local_current_normal_at(index)
            energy[index] = 0.5 * k * util.dot(overlap, overlap) * util.dot(normal, overlap)

        self._set_interaction_pair('surface_overlap_energy_density', energy)

    def get_surface_overlap_energy_density(self):
        return self._fetch('surface_overlap_energy_density', self.set_surface_overlap_energy_density)

    def set_surface_overlap_traction(self):
        k = self._overlap_stiffness()
        traction = {index: k * np.asarray(overlap) for index, overlap in self.get_particle_pair_overlap().items()}
        self._set_interaction_pair('surface_overlap_traction', traction)

    def get_surface_overlap_traction(self):
        return self._fetch('surface_overlap_traction', self.set_surface_overlap_traction)

    def set_surface_overlap_thickness(self):
        thickness = {}
        for index, overlap in self.get_particle_pair_overlap().items():
            thickness[index] = abs(util.dot(self.local_current_normal_at(index), overlap))

        self._set_interaction_pair('surface_overlap_thickness', thickness)

    def get_surface_overlap_thickness(self):
        return self._fetch('surface_overlap_thickness', self.set_surface_overlap_thickness)

    # ==================== sensitivities of the non-local micro-deformation
    def set_non_local_micro_deformation_derivatives(self):
        grad_chi = self.get_local_gradient_micro_deformation()
        spacing = self.get_local_reference_particle_spacing_vector()
        eye = np.eye(3)

        dchids = np.reshape(grad_chi, (9, 3))
        d2 = np.einsum('ia,jb,ck->ijkabc', eye, eye, eye).reshape(9, 81)

        self._set_interaction_pair('dnon_local_micro_deformation_dlocal_reference_relative_position_vector', dchids)
        self._set_interaction_pair('dnon_local_micro_deformation_dnon_local_reference_relative_position_vector',
                                   -dchids)
        self._set_interaction_pair('dnon_local_micro_deformation_dlocal_reference_distance_vector', dchids)
        self._set_interaction_pair('dnon_local_micro_deformation_dnon_local_micro_deformation_base', np.eye(9))
        self._set_interaction_pair('dnon_local_micro_deformation_dgradient_micro_deformation',
                                   np.einsum('ia,jb,c->ijabc', eye, eye, spacing).reshape(9, 27))
        self._set_interaction_pair(
            'd2non_local_micro_deformation_dlocal_reference_relative_position_vector_dgradient_micro_deformation', d2)
        self._set_interaction_pair(
            'd2non_local_micro_deformation_dnon_local_reference_relative_position_vector_dgradient_micro_deformation',
            -d2)
        self._set_interaction_pair(
            'd2non_local_micro_deformation_dlocal_reference_distance_vector_dgradient_micro_deformation', d2)

    def get_dnon_local_micro_deformation_dlocal_reference_relative_position_vector(self):
        return self._fetch('dnon_local_micro_deformation_dlocal_reference_relative_position_vector',
                           self.set_non_local_micro_deformation_derivatives)

    def get_dnon_local_micro_deformation_dnon_local_reference_relative_position_vector(self):
        return self._fetch('dnon_local_micro_deformation_dnon_local_reference_relative_position_vector',
                           self.set_non_local_micro_deformation_derivatives)

    def get_dnon_local_micro_deformation_dlocal_reference_distance_vector(self):
        return self._fetch('dnon_local_micro_deformation_dlocal_reference_distance_vector',
                           self.set_non_local_micro_deformation_derivatives)

    def get_dnon_local_micro_deformation_dnon_local_micro_deformation_base(self):
        return self._fetch('dnon_local_micro_deformation_dnon_local_micro_deformation_base',
                           self.set_non_local_micro_deformation_derivatives)

    def get_dnon_local_micro_deformation_dgradient_micro_deformation(self):
        return self._fetch('dnon_local_micro_deformation_dgradient_micro_deformation',
                           self.set_non_local_micro_deformation_derivatives)

    def get_d2non_local_micro_deformation_dlocal_reference_relative_position_vector_dgradient_micro_deformation(self):
        return self._fetch(
            'd2non_local_micro_deformation_dlocal_reference_relative_position_vector_dgradient_micro_deformation',
            self.set_non_local_micro_deformation_derivatives)

    def get_d2non_local_micro_deformation_dnon_local_reference_relative_position_vector_dgradient_micro_deformation(
            self):
        return self._fetch(
            'd2non_local_micro_deformation_dnon_local_reference_relative_position_vector_dgradient_micro_deformation',
            self.set_non_local_micro_deformation_derivatives)

    def get_d2non_local_micro_deformation_dlocal_reference_distance_vector_dgradient_micro_deformation(self):
        return self._fetch('d2non_local_micro_deformation_dlocal_reference_distance_vector_dgradient_micro_deformation',
                           self.set_non_local_micro_deformation_derivatives)

    # ==================== sensitivities of the current distance vector
    def set_current_distance_vector_derivatives(self):
        """ first and second derivatives of d = F.S - chi.Xi_l + chi_nl.Xi_nl

        with S = Xi_l - Xi_nl + D and chi_nl = chi_nl_base + grad_chi.S. second derivatives d2 d / dA dB are stored
        as len(d) X (len(A) * len(B)) with the column len(B) * a + b.
        """
        f = util.tomatrix(self.get_local_deformation_gradient())
        chi = util.tomatrix(self.get_local_micro_deformation())
        chi_nl = util.tomatrix(self.get_non_local_micro_deformation())
        grad_chi = np.reshape(self.get_local_gradient_micro_deformation(), (3, 3, 3))
        xi_l = self.get_local_surface_reference_relative_position_vector()
        xi_nl = self.get_non_local_surface_reference_relative_position_vector()
        spacing = self.get_local_reference_particle_spacing_vector()
        eye = np.eye(3)

        g = util.gradient_dot_left(grad_chi.flatten(), xi_nl)
        delta = np.einsum('iI,Jk->iIJk', eye, eye).reshape(3, 27)
        dgrad = np.einsum('ia,b,ck->iabck', eye, xi_nl, eye).reshape(3, 81)

        first = {
            'dlocal_reference_relative_position_vector': f - chi + g,
            'dnon_local_reference_relative_position_vector': -f + chi_nl - g,
            'dlocal_reference_distance_vector': f + g,
            'dlocal_deformation_gradient': np.einsum('iI,J->iIJ', eye, spacing).reshape(3, 9),
            'dlocal_micro_deformation': np.einsum('iI,J->iIJ', eye, -xi_l).reshape(3, 9),
            'dnon_local_micro_deformation_base': np.einsum('iI,J->iIJ', eye, xi_nl).reshape(3, 9),
            'dgradient_micro_deformation': np.einsum('ia,b,c->iabc', eye, xi_nl, spacing).reshape(3, 27),
        }
        for key, value in first.items():
            self._set_interaction_pair('dcurrent_distance_vector_' + key, value)

        second = {
            'dnon_local_reference_relative_position_vector_dlocal_reference_relative_position_vector':
                grad_chi.reshape(3, 9),
            'dlocal_deformation_gradient_dlocal_reference_relative_position_vector': delta,
            'dlocal_micro_deformation_dlocal_reference_relative_position_vector': -delta,
            'dgradient_micro_deformation_dlocal_reference_relative_position_vector': dgrad,
            'dnon_local_reference_relative_position_vector_dlocal_reference_distance_vector': grad_chi.reshape(3, 9),
            'dlocal_deformation_gradient_dlocal_reference_distance_vector': delta,
            'dgradient_micro_deformation_dlocal_reference_distance_vector': dgrad,
            'dnon_local_reference_relative_position_vector_dnon_local_reference_relative_position_vector':
                -(grad_chi + np.transpose(grad_chi, (0, 2, 1))).reshape(3, 9),
            'dlocal_deformation_gradient_dnon_local_reference_relative_position_vector': -delta,
            'dnon_local_micro_deformation_base_dnon_local_reference_relative_position_vector': delta,
            'dgradient_micro_deformation_dnon_local_reference_relative_position_vector':
                (np.einsum('ia,bk,c->iabck', eye, eye, spacing) -
                 np.einsum('ia,b,ck->iabck', eye, xi_nl, eye)).reshape(3, 81),
        }
        for key, value in second.items():
            self._set_interaction_pair('d2current_distance_vector_' + key, value)

    def get_dcurrent_distance_vector_dlocal_reference_relative_position_vector(self):
        return self._fetch('dcurrent_distance_vector_dlocal_reference_relative_position_vector',
                           self.set_current_distance_vector_derivatives)

    def get_dcurrent_distance_vector_dnon_local_reference_relative_position_vector(self):
        return self._fetch('dcurrent_distance_vector_dnon_local_reference_relative_position_vector',
                           self.set_current_distance_vector_derivatives)

    def get_dcurrent_distance_vector_dlocal_reference_distance_vector(self):
        return self._fetch('dcurrent_distance_vector_dlocal_reference_distance_vector',
                           self.set_current_distance_vector_derivatives)

    def get_dcurrent_distance_vector_dlocal_deformation_gradient(self):
        return self._fetch('dcurrent_distance_vector_dlocal_deformation_gradient',
                           self.set_current_distance_vector_derivatives)

    def get_dcurrent_distance_vector_dlocal_micro_deformation(self):
        return self._fetch('dcurrent_distance_vector_dlocal_micro_deformation',
                           self.set_current_distance_vector_derivatives)

    def get_dcurrent_distance_vector_dnon_local_micro_deformation_base(self):
        return self._fetch('dcurrent_distance_vector_dnon_local_micro_deformation_base',
                           self.set_current_distance_vector_derivatives)

    def get_dcurrent_distance_vector_dgradient_micro_deformation(self):
        return self._fetch('dcurrent_distance_vector_dgradient_micro_deformation',
                           self.set_current_distance_vector_derivatives)

    def get_d2current_distance_vector(self, first, second):
        """ second derivative of the current distance vector, e.g. ('local_deformation_gradient',
        'local_reference_relative_position_vector') """
        name = 'd2current_distance_vector_d' + first + '_d' + second
        if name not in self._data:
            raise AspValidationError('no second derivative of the current distance vector with respect to ' + first +
                                     ' and ' + second, parameter='second', value=(first, second))
        return self._fetch(name, self.set_current_distance_vector_derivatives)

    # ==================== assembly
    def assemble_local_particles(self):
        energies, stresses, volumes, ratios = [], [], [], []
        for i in range(self.get_num_local_particles()):
            self.set_local_index(i)
            print_step(self.slvr, 'LOCAL PARTICLE', i)

            energies.append(self.get_local_particle_energy())
            stresses.append(self.get_local_particle_micro_cauchy_stress())
            volumes.append(self.get_local_particle_current_volume())
            ratios.append(self.get_local_particle_log_probability_ratio())

            self.reset_local_particle_data()

        self._data['assembled_local_particle_energies'].set(energies)
        self._data['assembled_local_particle_micro_cauchy_stresses'].set(stresses)
        self._data['assembled_local_particle_volumes'].set(volumes)
        self._data['assembled_local_particle_log_probability_ratios'].set(ratios)

    def get_assembled_local_particle_energies(self):
        return self._fetch('assembled_local_particle_energies', self.assemble_local_particles)

    def get_assembled_local_particle_micro_cauchy_stresses(self):
        return self._fetch('assembled_local_particle_micro_cauchy_stresses', self.assemble_local_particles)

    def get_assembled_local_particle_volumes(self):
        return self._fetch('assembled_local_particle_volumes', self.assemble_local_particles)

    def get_assembled_local_particle_log_probability_ratios(self):
        return self._fetch('assembled_local_particle_log_probability_ratios', self.assemble_local_particles)

    def assemble_surface_responses(self):
        n_particles = self.get_num_local_particles()
        n_points = self.get_num_surface_points()

        names = ['adhesion_energy_densities', 'adhesion_tractions', 'adhesion_thicknesses',
                 'overlap_energy_densities', 'overlap_tractions', 'overlap_thicknesses']
        out = {name: [[[None] * n_particles for j in range(n_points)] for i in range(n_particles)] for name in names}

        for i in range(n_particles):
            self.set_local_index(i)
            print_step(self.slvr, 'LOCAL PARTICLE', i)

            for j in range(n_points):
                self.set_local_surface_node_index(j)
                print_step(self.slvr, 'SURFACE POINT', j)

                for k in range(n_particles):
                    self.set_non_local_index(k)

                    out['adhesion_energy_densities'][i][j][k] = self.get_surface_adhesion_energy_density()
                    out['adhesion_tractions'][i][j][k] = self.get_surface_adhesion_traction()
                    out['adhesion_thicknesses'][i][j][k] = self.get_surface_adhesion_thickness()
                    out['overlap_energy_densities'][i][j][k] = self.get_surface_overlap_energy_density()
                    out['overlap_tractions'][i][j][k] = self.get_surface_overlap_traction()
                    out['overlap_thicknesses'][i][j][k] = self.get_surface_overlap_thickness()

                    self.reset_interaction_pair_data()

                self.reset_surface_point_data()

            self.reset_local_particle_data()

        for name in names:
            self._data['assembled_surface_' + name].set(out[name])

    def get_assembled_surface_adhesion_energy_densities(self):
        return self._fetch('assembled_surface_adhesion_energy_densities', self.assemble_surface_responses)

    def get_assembled_surface_adhesion_tractions(self):
        return self._fetch('assembled_surface_adhesion_tractions', self.assemble_surface_responses)

    def get_assembled_surface_adhesion_thicknesses(self):
        return self._fetch('assembled_surface_adhesion_thicknesses', self.assemble_surface_responses)

    def get_assembled_surface_overlap_energy_densities(self):
        return self._fetch('assembled_surface_overlap_energy_densities', self.assemble_surface_responses)

    def get_assembled_surface_overlap_tractions(self):
        return self._fetch('assembled_surface_overlap_tractions', self.assemble_surface_responses)

    def get_assembled_surface_overlap_thicknesses(self):
        return self._fetch('assembled_surface_overlap_thicknesses', self.assemble_surface_responses)

    def integrate_surface_adhesion_energies(self):
        densities = self.get_assembled_surface_adhesion_energy_densities()
        n_particles = len(densities)
        energies = np.zeros((n_particles, n_particles))
        for i in range(n_particles):
            self.set_local_index(i)
            points = self.get_local_reference_surface_points()
            conn = self.get_unit_sphere_connectivity()
            for k in range(n_particles):
                values = [densities[i][j][k] for j in range(len(densities[i]))]
                energies[i, k] = surf.integrate_mesh(values, points, conn)[0]

            self.reset_local_particle_data()

        self._data['assembled_surface_adhesion_energies'].set(energies)

    def get_assembled_surface_adhesion_energies(self):
        return self._fetch('assembled_surface_adhesion_energies', self.integrate_surface_adhesion_energies)
