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
import numpy as np


def eye(dim=3):
    out = np.eye(dim).flatten()
    return out


def tomatrix(inp, dim=3):
    out = np.reshape(np.asarray(inp, dtype=float), (dim, dim))
    return out


def dot(inp1, inp2):
    out = float(np.dot(inp1, inp2))
    return out


def norm(inp):
    out = float(np.sqrt(np.dot(inp, inp)))
    return out


def cross(inp1, inp2):
    out = np.cross(inp1, inp2)
    return out


def matrix_vector(inp1, inp2):
    # flat 3X3 tensor times a 3X1 vector
    out = np.matmul(tomatrix(inp1), np.asarray(inp2, dtype=float))
    return out


def matrix_multiply(inp1, inp2):
    out = np.matmul(tomatrix(inp1), tomatrix(inp2)).flatten()
    return out


def transpose(inp):
    out = tomatrix(inp).T.flatten()
    return out


def determinant(inp):
    out = float(np.linalg.det(tomatrix(inp)))
    return out


def inverse(inp):
    out = np.linalg.inv(tomatrix(inp)).flatten()
    return out


def contract_gradient(grad, vec):
    # (grad . vec)_ij = grad_ijk vec_k
    out = np.matmul(np.reshape(np.asarray(grad, dtype=float), (9, 3)), np.asarray(vec, dtype=float))
    return out


def gradient_dot_left(grad, vec):
    # out_ik = vec_j grad_ijk
    out = np.einsum('ijk,j->ik', np.reshape(np.asarray(grad, dtype=float), (3, 3, 3)), vec)
    return out


def fuzzy_equals(inp1, inp2, tol_rel=1e-6, tol_abs=1e-9):
    tol = tol_rel * abs(inp2) + tol_abs
    return abs(inp1 - inp2) <= tol
