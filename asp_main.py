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
import asp_classes as cls
import asp_module_main as main
import asp_module_utility as util
import numpy as np
import sys


N_STATE_VARIABLES = 2  # required number of state variables of the host interface
N_MATERIAL_PARAMETERS = 2  # required number of material constants of the host interface
SPATIAL_DIMENSIONS = 3


def say_hello(message, stream=None):
    if message == "George":
        raise cls.AspHostError("George is a wolf in sheep's clothing!")

    if stream is None:
        stream = sys.stdout
    stream.write("Hello " + message + "\n")


def dummy_material_model(stress, statev, ddsdde, sse, spd, scd, rpl, ddsddt, drplde, drpldt, strain, dstrain, time,
                         dtime, temp, dtemp, predef, dpred, cmname, ndi, nshr, ntens, nstatv, props, nprops, coords,
                         drot, pnewdt, celent, dfgrd0, dfgrd1, noel, npt, layer, kspt, jstep, kinc, stream=None):
    """ template material model working on row-major numpy copies of the host memory """
    try:
        say_hello("Abaqus", stream=stream)
    except cls.AspHostError as err:
        raise cls.AspHostError("dummy_material_model: error when calling say_hello\n  " + str(err)) from err


def abaqus_interface(stress, statev, ddsdde, sse, spd, scd, rpl, ddsddt, drplde, drpldt, stran, dstran, time, dtime,
                     temp, dtemp, predef, dpred, cmname, ndi, nshr, ntens, nstatv, props, nprops, coords, drot, pnewdt,
                     celent, dfgrd0, dfgrd1, noel, npt, layer, kspt, jstep, kinc, stream=None):
    """ UMAT style entry point

    the array arguments are flat numpy arrays in host (column-major) memory. stress, statev, ddsdde, ddsddt and
    drplde are updated in place, the scalar outputs (sse, spd, scd, rpl, drpldt, pnewdt) are returned as a tuple.
    """
    if stream is None:
        stream = sys.stdout

    if nstatv != N_STATE_VARIABLES:
        raise cls.AspHostError("the asp host interface requires exactly " + str(N_STATE_VARIABLES) +
                               " state variables. Found " + str(nstatv) + ".")

    if nprops != N_MATERIAL_PARAMETERS:
        raise cls.AspHostError("the asp host interface requires exactly " + str(N_MATERIAL_PARAMETERS) +
                               " material constants. Found " + str(nprops) + ".")

    buffers = (("stress", stress, ntens), ("statev", statev, nstatv), ("ddsdde", ddsdde, ntens * ntens),
               ("props", props, nprops))
    for name, buffer, size in buffers:
        if len(buffer) < size:
            raise cls.AspHostError("the host buffer " + name + " holds " + str(len(buffer)) + " entries but " +
                                   str(size) + " are declared.")

    dim = SPATIAL_DIMENSIONS
    stress_rm = np.array(stress[:ntens], dtype=float)
    statev_rm = np.array(statev[:nstatv], dtype=float)
    ddsddt_rm = np.array(ddsddt[:ntens], dtype=float)
    drplde_rm = np.array(drplde[:ntens], dtype=float)
    strain = np.array(stran[:ntens], dtype=float)
    dstrain = np.array(dstran[:ntens], dtype=float)
    time = np.array(time[:2], dtype=float)
    predef = np.array(predef[:1], dtype=float)
    dpred = np.array(dpred[:1], dtype=float)
    props_rm = np.array(props[:nprops], dtype=float)
    coords = np.array(coords[:dim], dtype=float)
    jstep = np.array(jstep[:4], dtype=int)
    cmname = cmname[:80].strip()

    # host matrices are stored column by column
    ddsdde_rm = np.reshape(np.array(ddsdde[:ntens * ntens], dtype=float), (ntens, ntens), order='F')
    drot = np.reshape(np.array(drot[:dim * dim], dtype=float), (dim, dim), order='F')
    dfgrd0 = np.reshape(np.array(dfgrd0[:dim * dim], dtype=float), (dim, dim), order='F')
    dfgrd1 = np.reshape(np.array(dfgrd1[:dim * dim], dtype=float), (dim, dim), order='F')

    if kinc == 1 and noel == 1 and npt == 1:
        try:
            dummy_material_model(stress_rm, statev_rm, ddsdde_rm, sse, spd, scd, rpl, ddsddt_rm, drplde_rm, drpldt,
                                 strain, dstrain, time, dtime, temp, dtemp, predef, dpred, cmname, ndi, nshr, ntens,
                                 nstatv, props_rm, nprops, coords, drot, pnewdt, celent, dfgrd0, dfgrd1, noel, npt,
                                 layer, kspt, jstep, kinc, stream=stream)
        except cls.AspHostError as err:
            message = "abaqus_interface: error when calling dummy_material_model."
            print(message + "\n  " + str(err).replace("\n", "\n  "), file=stream)
            # a failure without a requested cutback of the time increment is fatal
            if util.fuzzy_equals(pnewdt, 1.0):
                raise cls.AspHostError(message) from err

    # pack back into host memory
    stress[:ntens] = stress_rm
    ddsddt[:ntens] = ddsddt_rm
    drplde[:ntens] = drplde_rm
    statev[:nstatv] = statev_rm
    ddsdde[:ntens * ntens] = ddsdde_rm.flatten(order='F')

    return sse, spd, scd, rpl, drpldt, pnewdt


def mainfunc(stream=None):
    # === define particle
    # see the definitions in the "Particle" class
    # particle parameters are (lambda, mu) of the default linear elastic kernel, surface parameters are the normal and
    # tangential adhesion stiffnesses and the overlap parameter is the overlap stiffness
    glass_bead = cls.Particle(radius=1.0, particle_parameters=(120.0, 80.0), surface_parameters=(12.3, 45.6),
                              overlap_parameters=(2.3,))

    # set the particle to be used for the analysis
    particle = glass_bead

    # ===  set the kinematics of the material point
    kinematics = cls.Kinematics(previous_time=0.0, delta_time=0.01, temperature=293.0, previous_temperature=293.0,
                                deformation_gradient=[1.01, 0.0, 0.0, 0.0, 0.99, 0.0, 0.0, 0.0, 1.0],
                                micro_deformation=[1.005, 0.0, 0.0, 0.0, 0.995, 0.0, 0.0, 0.0, 1.0],
                                gradient_micro_deformation=np.zeros(27),
                                previous_state_variables=np.zeros(N_STATE_VARIABLES))

    # ===  set solver parameters
    # see the definitions in the "Solver" class. User usually does not need to change these.
    tolerance_absolute = 1E-09
    tolerance_relative = 1E-09
    maximum_iterations_overlap = 100
    print_step_information = True
    solver = cls.Solver(num_local_particles=1, surface_element_count=1, tol_abs=tolerance_absolute,
                        tol_rel=tolerance_relative, maxit_overlap=maximum_iterations_overlap,
                        stpinfo=print_step_information, stream=stream)

    # ================================ main solution
    print("========== START OF ANALYSIS ==========", file=solver.out())

    asp = main.AspBase(particle, kinematics, solver)

    results = {
        'energies': asp.get_assembled_local_particle_energies(),
        'micro_cauchy_stresses': asp.get_assembled_local_particle_micro_cauchy_stresses(),
        'volumes': asp.get_assembled_local_particle_volumes(),
        'log_probability_ratios': asp.get_assembled_local_particle_log_probability_ratios(),
        'surface_adhesion_energy_densities': asp.get_assembled_surface_adhesion_energy_densities(),
        'surface_adhesion_tractions': asp.get_assembled_surface_adhesion_tractions(),
        'surface_overlap_energy_densities': asp.get_assembled_surface_overlap_energy_densities(),
        'surface_adhesion_energies': asp.get_assembled_surface_adhesion_energies(),
    }

    print("========== END OF ANALYSIS ==========", file=solver.out())
    return results


if __name__ == "__main__":
    mainfunc()
