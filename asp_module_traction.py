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
from asp_classes import AspValidationError, AspConvergenceError
import asp_module_utility as util
import numpy as np


def _check_length(value, size, name):
    value = np.asarray(value, dtype=float)
    if value.size != size:
        raise AspValidationError(name + ' must have ' + str(size) + ' components. Found ' + str(value.size) + '.',
                                 parameter=name, value=value.size)
    return value.flatten()


def decompose_vector(d, n, tol_rel=1e-9, tol_abs=1e-9):
    d = _check_length(d, 3, 'd')
    n = _check_length(n, 3, 'n')
    if not util.fuzzy_equals(util.norm(n), 1.0, tol_rel, tol_abs):
        raise AspValidationError('the normal vector must be a unit vector. Norm is ' + str(util.norm(n)),
                                 parameter='n', value=n, suggestion='normalize the vector before decomposing')

    dn = util.dot(d, n) * n
    dt = d - dn
    return dn, dt


def _linear_parameters(parameters):
    parameters = np.asarray(parameters, dtype=float).flatten()
    if parameters.size != 2:
        raise AspValidationError('two parameters are required for the linear traction-separation law. Found ' +
                                 str(parameters.size) + '.', parameter='parameters', value=parameters.size,
                                 suggestion='pass (normal stiffness, tangential stiffness)')
    return parameters


def compute_linear_traction_energy(dn, dt, parameters):
    en, et = _linear_parameters(parameters)
    energy = 0.5 * (en * util.dot(dn, dn) + et * util.dot(dt, dt))
    return energy


def compute_linear_traction(dn, dt, parameters):
    en, et = _linear_parameters(parameters)
    traction = en * np.asarray(dn) + et * np.asarray(dt)
    return traction


def compute_current_distance(xi_1, xi_2, ref_d, f, chi, grad_chi):
    # distance between the local surface point and the non-local surface point in the current configuration
    xi_1 = _check_length(xi_1, 3, 'xi_1')
    xi_2 = _check_length(xi_2, 3, 'xi_2')
    ref_d = _check_length(ref_d, 3, 'D')
    f = _check_length(f, 9, 'F')
    chi = _check_length(chi, 9, 'chi')
    grad_chi = _check_length(grad_chi, 27, 'grad_chi')

    dx = xi_1 + ref_d - xi_2
    chi_2 = chi + util.contract_gradient(grad_chi, dx)
    d = util.matrix_vector(f, dx) - util.matrix_vector(chi, xi_1) + util.matrix_vector(chi_2, xi_2)
    return d


def current_distance_jacobians(xi_1, xi_2, ref_d, f, chi, grad_chi):
    """ closed form jacobians of compute_current_distance

    returns a dictionary with the 3X3 blocks 'xi_1', 'xi_2', 'D', the 3X9 blocks 'F', 'chi' and the 3X27 block
    'grad_chi'. chi enters both as the local micro-deformation and as the base of the non-local one.
    """
    xi_1 = _check_length(xi_1, 3, 'xi_1')
    xi_2 = _check_length(xi_2, 3, 'xi_2')
    ref_d = _check_length(ref_d, 3, 'D')
    f = _check_length(f, 9, 'F')
    chi = _check_length(chi, 9, 'chi')
    grad_chi = _check_length(grad_chi, 27, 'grad_chi')

    eye = np.eye(3)
    dx = xi_1 + ref_d - xi_2
    chi_2 = chi + util.contract_gradient(grad_chi, dx)
    g = util.gradient_dot_left(grad_chi, xi_2)

    out = {
        'F': np.einsum('iI,J->iIJ', eye, dx).reshape(3, 9),
        'chi': np.einsum('iI,J->iIJ', eye, xi_2 - xi_1).reshape(3, 9),
        'grad_chi': np.einsum('ia,b,c->iabc', eye, xi_2, dx).reshape(3, 27),
        'xi_1': util.tomatrix(f) - util.tomatrix(chi) + g,
        'xi_2': -util.tomatrix(f) + util.tomatrix(chi_2) - g,
        'D': util.tomatrix(f) + g,
    }
    return out


def _closest_surface_point(chi_2, radius, r, tol, maxit):
    # closest point to r of the ellipsoid {chi_2 Y : |Y| = radius}, returned as Y
    # stationarity: (C - lam I) Y = b with C = chi_2^T chi_2 and b = chi_2^T r
    c = np.matmul(chi_2.T, chi_2)
    s, q = np.linalg.eigh(c)
    b = np.matmul(q.T, np.matmul(chi_2.T, r))

    scale = max(abs(s[-1]), 1.0)
    smallest = np.abs(s - s[0]) <= tol * scale
    b_small = np.linalg.norm(b[smallest])
    lower = s[0] - np.linalg.norm(b) / radius

    if b_small <= tol * max(np.linalg.norm(b), 1.0):
        # the point lies on a symmetry plane of the smallest stretch
        b[smallest] = 0.0
        y = np.zeros(3)
        y[~smallest] = b[~smallest] / (s[~smallest] - s[0])
        if np.dot(y, y) <= radius ** 2:
            y[np.argmax(smallest)] = np.sqrt(radius ** 2 - np.dot(y, y))
            return np.matmul(q, y)
        upper = s[0]
    else:
        upper = s[0] - b_small / radius

    # bisection on the multiplier, |Y(lam)| grows monotonically on (lower, upper)
    lam = 0.5 * (lower + upper)
    value = 0.0
    iteration = 0
    while upper - lower > tol * scale:
        iteration += 1
        if iteration > maxit:
            raise AspConvergenceError('the overlap projection did not converge in ' + str(maxit) + ' iterations',
                                      iterations=iteration, residual=value)
        lam = 0.5 * (lower + upper)
        y = b / (s - lam)
        value = np.dot(y, y) - radius ** 2
        if value > 0.0:
            upper = lam
        else:
            lower = lam

    y = b / (s - lam)
    return np.matmul(q, y)


def compute_particle_overlap(xi_1, dx, radius_2, f, chi, chi_2_base, grad_chi, tol=1e-12, maxit=200):
    """ overlap of a local surface point with the non-local particle

    the local point sits at chi.xi_1 relative to the local centre. the non-local particle is centred at F.dx and its
    surface is {F.dx + chi_2.Y : |Y| = radius_2} with chi_2 = chi_2_base + grad_chi.dx. if the local point lies
    strictly inside the non-local particle the overlap is the vector from the point to the closest point of that
    surface, otherwise it is zero.
    """
    xi_1 = _check_length(xi_1, 3, 'xi_1')
    dx = _check_length(dx, 3, 'dx')
    f = _check_length(f, 9, 'F')
    chi = _check_length(chi, 9, 'chi')
    chi_2_base = _check_length(chi_2_base, 9, 'chi_2_base')
    grad_chi = _check_length(grad_chi, 27, 'grad_chi')

    chi_2 = util.tomatrix(chi_2_base + util.contract_gradient(grad_chi, dx))
    point = util.matrix_vector(chi, xi_1)
    center = util.matrix_vector(f, dx)
    r = point - center

    xi_2 = np.linalg.solve(chi_2, r)
    if util.norm(xi_2) >= radius_2:
        return np.zeros(3)

    y = _closest_surface_point(chi_2, radius_2, r, tol, maxit)
    overlap = center + np.matmul(chi_2, y) - point
    return overlap
