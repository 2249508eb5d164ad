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
from asp_classes import AspValidationError
import numpy as np


# local coordinates of the nodes of the 9 node quadrilateral
local_nodes = np.array([[-1.0, -1.0], [1.0, -1.0], [1.0, 1.0], [-1.0, 1.0],
                        [0.0, -1.0], [1.0, 0.0], [0.0, 1.0], [-1.0, 0.0],
                        [0.0, 0.0]])

# 2X2 Gauss rule
gauss_points = np.array([[-1.0, -1.0], [1.0, -1.0], [1.0, 1.0], [-1.0, 1.0]]) / np.sqrt(3.0)
gauss_weights = np.ones(4)


def build_surface_points(x0, y0, z0, dx, dy, nx, ny):
    points = np.zeros(3 * nx * ny)
    index = 0
    for j in range(ny):
        for i in range(nx):
            points[index: index + 3] = [x0 + i * dx, y0 + j * dy, z0]
            index += 3

    return points


def rotate_points(points, theta_x, theta_y, theta_z):
    cx, sx = np.cos(theta_x), np.sin(theta_x)
    cy, sy = np.cos(theta_y), np.sin(theta_y)
    cz, sz = np.cos(theta_z), np.sin(theta_z)

    rx = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    ry = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    rz = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    rot = np.matmul(rz, np.matmul(ry, rx))

    out = np.matmul(np.reshape(points, (-1, 3)), rot.T).flatten()
    return out


def form_base_cube_points(element_count):
    # unit cube [-1, 1]^3 surface, faces in the order top, back, bottom, front, right, left
    n = 2 * element_count + 1
    x, y, z = -1.0, -1.0, 1.0
    dx = dy = 1.0 / element_count

    # the four faces wrapping around the x axis omit their last row, which is the first row of the next face
    sheet = build_surface_points(x, y, z, dx, dy, n, n - 1)
    top = sheet
    back = rotate_points(sheet, -0.5 * np.pi, 0.0, 0.0)
    bottom = rotate_points(sheet, -np.pi, 0.0, 0.0)
    front = rotate_points(sheet, -1.5 * np.pi, 0.0, 0.0)

    # the side faces only carry their interior points
    inner = build_surface_points(x + dx, y + dy, z, dx, dy, n - 2, n - 2)
    right = rotate_points(inner, 0.0, 0.5 * np.pi, 0.0)
    left = rotate_points(inner, 0.0, -0.5 * np.pi, 0.0)

    points = np.concatenate([top, back, bottom, front, right, left])
    return points


def form_surface_connectivity(ids, nex, ney):
    ids = np.asarray(ids)
    if ids.size != (2 * nex + 1) * (2 * ney + 1):
        raise AspValidationError('the surface id grid has ' + str(ids.size) + ' entries but ' +
                                 str((2 * nex + 1) * (2 * ney + 1)) + ' are required', parameter='ids',
                                 value=ids.size)

    w = 2 * nex + 1
    conn = np.zeros(9 * nex * ney, dtype=int)
    index = 0
    for j in range(ney):
        for i in range(nex):
            base = 2 * w * j + 2 * i
            conn[9 * index: 9 * index + 9] = [ids[base], ids[base + 2], ids[base + 2 * w + 2], ids[base + 2 * w],
                                              ids[base + 1], ids[base + w + 2], ids[base + 2 * w + 1], ids[base + w],
                                              ids[base + w + 1]]
            index += 1

    return conn


def _side_face_ids(n, bottom_edge, top_edge, left_edge, right_edge, center):
    ids = np.zeros(n * n, dtype=int)
    ids[:n] = bottom_edge
    ids[n * (n - 1):] = top_edge
    for i in range(n - 2):
        ids[n * (i + 1)] = left_edge[i]
        ids[n * (i + 1) + 1: n * (i + 1) + n - 1] = center[(n - 2) * i: (n - 2) * (i + 1)]
        ids[n * (i + 1) + n - 1] = right_edge[i]

    return ids


def form_cube_connectivity(element_count):
    k = element_count
    n = 2 * k + 1
    m = n * (n - 1)  # number of points on each of the four wrapped faces

    grids = []

    # top, back, bottom
    for face in range(3):
        grids.append(np.arange(face * m, face * m + n * n))

    # front closes onto the first row of the top
    grids.append(np.concatenate([np.arange(3 * m, 4 * m), np.arange(0, n)]))

    # right
    bottom_edge = np.array([n - 1] + [4 * m - 1 - n * (i - 1) for i in range(1, n)])
    top_edge = np.array([m + n * i + n - 1 for i in range(n)])
    left_edge = np.array([n * (i + 1) + n - 1 for i in range(n - 2)])
    right_edge = np.array([3 * m - 1 - n * i for i in range(n - 2)])
    center = np.arange(4 * m, 4 * m + (n - 2) ** 2)
    grids.append(_side_face_ids(n, bottom_edge, top_edge, left_edge, right_edge, center))

    # left
    bottom_edge = np.array([3 * m + n * i for i in range(n - 1)] + [0])
    top_edge = np.array([2 * m - n * i for i in range(n)])
    right_edge = np.array([n * (i + 1) for i in range(n - 2)])
    left_edge = np.array([3 * m - n * (i + 1) for i in range(n - 2)])
    center = np.arange(4 * m + (n - 2) ** 2, 4 * m + 2 * (n - 2) ** 2)
    grids.append(_side_face_ids(n, bottom_edge, top_edge, left_edge, right_edge, center))

    conn = np.concatenate([form_surface_connectivity(ids, k, k) for ids in grids])
    return conn


def decompose_sphere(radius, element_count):
    if element_count < 1:
        raise AspValidationError('element count must be at least 1', parameter='element_count',
                                 value=element_count)

    points = np.reshape(form_base_cube_points(element_count), (-1, 3))
    points = radius * points / np.linalg.norm(points, axis=1)[:, None]
    conn = form_cube_connectivity(element_count)
    return points.flatten(), conn


def shape_functions(xi, eta):
    out = np.zeros(9)
    for i in range(4):
        xi_i, eta_i = local_nodes[i]
        out[i] = 0.25 * (1.0 + xi_i * xi) * xi_i * xi * (1.0 + eta_i * eta) * eta_i * eta

    for i in (4, 6):
        eta_i = local_nodes[i][1]
        out[i] = 0.5 * (1.0 - xi ** 2) * (1.0 + eta_i * eta) * eta_i * eta

    for i in (5, 7):
        xi_i = local_nodes[i][0]
        out[i] = 0.5 * (1.0 - eta ** 2) * (1.0 + xi_i * xi) * xi_i * xi

    out[8] = (1.0 - xi ** 2) * (1.0 - eta ** 2)
    return out


def local_gradient_shape_functions(xi, eta):
    out = np.zeros((9, 2))
    for i in range(4):
        xi_i, eta_i = local_nodes[i]
        fx = (1.0 + xi_i * xi) * xi_i * xi
        fe = (1.0 + eta_i * eta) * eta_i * eta
        out[i, 0] = 0.25 * (xi_i + 2.0 * xi) * fe
        out[i, 1] = 0.25 * fx * (eta_i + 2.0 * eta)

    for i in (4, 6):
        eta_i = local_nodes[i][1]
        fe = (1.0 + eta_i * eta) * eta_i * eta
        out[i, 0] = -xi * fe
        out[i, 1] = 0.5 * (1.0 - xi ** 2) * (eta_i + 2.0 * eta)

    for i in (5, 7):
        xi_i = local_nodes[i][0]
        fx = (1.0 + xi_i * xi) * xi_i * xi
        out[i, 0] = 0.5 * (1.0 - eta ** 2) * (xi_i + 2.0 * xi)
        out[i, 1] = -eta * fx

    out[8, 0] = -2.0 * xi * (1.0 - eta ** 2)
    out[8, 1] = -2.0 * (1.0 - xi ** 2) * eta
    return out


def _nodal(nodal_values):
    values = np.asarray(nodal_values, dtype=float)
    if values.ndim == 1:
        values = values[:, None]
    if values.shape[0] != 9:
        raise AspValidationError('nodal values must be given for the 9 nodes of the element. Found ' +
                                 str(values.shape[0]) + '.', parameter='nodal_values', value=values.shape)
    return values


def interpolate_function(nodal_values, xi, eta):
    # nodal_values is 9 X dim
    out = np.matmul(shape_functions(xi, eta), _nodal(nodal_values))
    return out


def local_gradient_function(nodal_values, xi, eta):
    # dim X 2 gradient with respect to (xi, eta)
    out = np.matmul(_nodal(nodal_values).T, local_gradient_shape_functions(xi, eta))
    return out


def local_jacobian(nodal_positions, xi, eta):
    dxdxi = local_gradient_function(nodal_positions, xi, eta)
    if dxdxi.shape[0] != 3:
        raise AspValidationError('the surface jacobian requires 3D nodal positions. Found dimension ' +
                                 str(dxdxi.shape[0]) + '.', parameter='nodal_positions', value=dxdxi.shape)

    out = float(np.linalg.norm(np.cross(dxdxi[:, 0], dxdxi[:, 1])))
    return out


def integrate_function(nodal_values, nodal_positions):
    values = _nodal(nodal_values)
    out = np.zeros(values.shape[1])
    for point, weight in zip(gauss_points, gauss_weights):
        jac = local_jacobian(nodal_positions, point[0], point[1])
        out += interpolate_function(values, point[0], point[1]) * weight * jac

    return out


def integrate_mesh(values, points, connectivity):
    values = np.asarray(values, dtype=float).flatten()
    points = np.asarray(points, dtype=float).flatten()
    connectivity = np.asarray(connectivity, dtype=int).flatten()

    if points.size % 3 != 0:
        raise AspValidationError('the points vector has a length of ' + str(points.size) +
                                 ' which is not a multiple of 3', parameter='points', value=points.size)
    if connectivity.size % 9 != 0:
        raise AspValidationError('the connectivity vector has a length of ' + str(connectivity.size) +
                                 ' which is not a multiple of 9', parameter='connectivity', value=connectivity.size)

    n_points = points.size // 3
    if n_points == 0 or values.size == 0 or values.size % n_points != 0:
        raise AspValidationError('the values vector has a length of ' + str(values.size) +
                                 ' which is not a positive multiple of the number of points ' + str(n_points),
                                 parameter='values', value=values.size)

    function_dim = values.size // n_points
    positions = np.reshape(points, (-1, 3))
    nodal = np.reshape(values, (-1, function_dim))

    out = np.zeros(function_dim)
    for e in range(connectivity.size // 9):
        ids = connectivity[9 * e: 9 * e + 9]
        out += integrate_function(nodal[ids], positions[ids])

    return out
