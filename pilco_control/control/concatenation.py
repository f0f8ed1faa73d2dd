"""Concatenation of a controller with a saturation function."""
import logging

import numpy as np

from pilco_control.utils import numpy as np_utils

from . import core
from . import saturation as saturation_

logger = logging.getLogger(__name__)


def concat(
    controller,
    saturation,
    policy,
    mean,
    covariance,
    with_derivatives=False,
    assert_valid=False,
    valid_tolerance=1e-8,
):
    """Moments of a squashed control signal u = sat(con(x)) for x ~ N(m, s).

    The controller is first applied to the input to get the unsquashed control
    v, whose moments are placed in a joint distribution over (x, v). The
    saturation function is then applied to the v block of the joint.

    Args:
        controller: Controller moment function. See `core`.
        saturation: Saturation moment function. See `core`.
            If None, selected from `policy.max_u` with
            `saturation.saturation_for`.
        policy: The policy. Must have a `max_u` attribute giving the amplitude
            limit of each control dimension; its length is the control
            dimension E.
        mean: Input mean m. An array of shape [D].
        covariance: Input covariance s. An array of shape [D, D].
        with_derivatives: Also compute the Jacobians of the control moments
            with respect to m, s and the policy parameters.
        assert_valid: Check that `covariance` is symmetric positive
            semi-definite.
        valid_tolerance: Numerical tolerance of the validity check.

    Returns:
        A `ControllerMoments` instance containing
            mean: Control mean M. An array of shape [E].
            covariance: Control covariance S. An array of shape [E, E].
            inv_in_cov_io_cov: C = inv(s) @ Cov[x, u]. An array of shape [D, E].
            dm, ds, dp: Jacobians w.r.t. m, s and the policy parameters if
                `with_derivatives` is true, otherwise None.

    Raises:
        DimensionMismatchError: If the input or collaborator outputs have
            inconsistent shapes.
        InvalidCovarianceError: If `assert_valid` and `covariance` is not a
            valid covariance matrix.
    """
    # Based off of the file control/conCat.m in the PILCO source.
    max_u = np.asarray(policy.max_u, dtype=float)
    if max_u.ndim > 1:
        raise core.DimensionMismatchError(
            f"policy.max_u must be a vector, got an array of shape {max_u.shape}."
        )
    max_u = np.atleast_1d(max_u)
    mean, covariance = core.as_mean_covariance(mean, covariance)
    if assert_valid:
        core.assert_valid_covariance(covariance, tolerance=valid_tolerance)

    if saturation is None:
        saturation = saturation_.saturation_for(max_u)

    input_dim = mean.shape[0]
    control_dim = max_u.shape[0]
    joint_dim = input_dim + control_dim
    logger.debug(
        "Concatenating %s with %s (input_dim=%d, control_dim=%d)",
        getattr(controller, "__name__", controller),
        getattr(saturation, "__name__", saturation),
        input_dim,
        control_dim,
    )

    # Joint distribution over the state (i) and the control (j).
    i = slice(0, input_dim)
    j = slice(input_dim, joint_dim)
    joint_shape = (joint_dim, joint_dim)
    joint_mean = np.zeros(joint_dim)
    joint_mean[i] = mean
    joint_covariance = np.zeros(joint_shape)
    joint_covariance[i, i] = covariance

    # 1. Unsquashed controller
    control = controller(policy, mean, covariance, with_derivatives=with_derivatives)
    _check_controller_moments(control, input_dim, control_dim, with_derivatives)

    Q = control.inv_in_cov_io_cov
    joint_mean[j] = control.mean
    joint_covariance[j, j] = control.covariance
    # Cov[x, v] = s @ inv(s) @ Cov[x, v]
    cross_covariance = covariance @ Q
    joint_covariance[i, j] = cross_covariance
    joint_covariance[j, i] = cross_covariance.T

    # 2. Saturation
    control_index = np.arange(input_dim, joint_dim)
    squashed = saturation(
        joint_mean,
        joint_covariance,
        control_index,
        max_u,
        with_derivatives=with_derivatives,
    )
    _check_saturation_moments(squashed, joint_dim, control_dim, with_derivatives)

    # Cov[x, u] = Cov[x, z] @ R = s @ [I Q] @ R  for z = (x, v)
    identity_q = np.hstack([np.eye(input_dim), Q])
    R = squashed.inv_in_cov_io_cov
    inv_in_cov_io_cov = identity_q @ R

    if not all(
        np.all(np.isfinite(x))
        for x in (squashed.mean, squashed.covariance, inv_in_cov_io_cov)
    ):
        logger.warning("Non-finite squashed control moments.")

    if not with_derivatives:
        return core.ControllerMoments(
            mean=squashed.mean,
            covariance=squashed.covariance,
            inv_in_cov_io_cov=inv_in_cov_io_cov,
        )

    # Rows of the joint covariance Jacobians for each block.
    jj = np_utils.vec_block_indices(joint_shape, j, j)
    ij = np_utils.vec_block_indices(joint_shape, i, j)
    ji = np_utils.vec_block_indices(joint_shape, i, j, transpose=True)

    num_parameters = control.dp.mean.shape[1]
    eye_d = np.eye(input_dim)
    eye_e = np.eye(control_dim)

    # Jacobians of the joint mean and covariance w.r.t. m, s and p.
    # The state block only depends on m and s directly.
    joint_mean_dm = np.zeros((joint_dim, input_dim))
    joint_mean_dm[i] = eye_d
    joint_covariance_dm = np.zeros((joint_dim ** 2, input_dim))
    joint_mean_ds = np.zeros((joint_dim, input_dim ** 2))
    joint_covariance_ds = np.kron(joint_mean_dm, joint_mean_dm)
    joint_mean_dp = np.zeros((joint_dim, num_parameters))
    joint_covariance_dp = np.zeros((joint_dim ** 2, num_parameters))

    joint_mean_dm[j] = control.dm.mean
    joint_covariance_dm[jj] = control.dm.covariance
    joint_mean_ds[j] = control.ds.mean
    joint_covariance_ds[jj] = control.ds.covariance
    joint_mean_dp[j] = control.dp.mean
    joint_covariance_dp[jj] = control.dp.covariance

    # d vec(s Q) = (I ⊗ s) d vec(Q) + (Q' ⊗ I) d vec(s)
    s_kron = np.kron(eye_e, covariance)
    q_kron = np.kron(Q.T, eye_d)
    joint_covariance_dm[ij] = s_kron @ control.dm.inv_in_cov_io_cov
    joint_covariance_ds[ij] = s_kron @ control.ds.inv_in_cov_io_cov + q_kron
    joint_covariance_dp[ij] = s_kron @ control.dp.inv_in_cov_io_cov
    for joint_covariance_d in (
        joint_covariance_dm,
        joint_covariance_ds,
        joint_covariance_dp,
    ):
        joint_covariance_d[ji] = joint_covariance_d[ij]

    # Chain rule through the saturation.
    def _chain(joint_mean_d, joint_covariance_d):
        return core.MomentJacobians(
            *(
                d_dmean @ joint_mean_d + d_dcovariance @ joint_covariance_d
                for d_dmean, d_dcovariance in zip(squashed.dm, squashed.ds)
            )
        )

    squashed_dm = _chain(joint_mean_dm, joint_covariance_dm)
    squashed_ds = _chain(joint_mean_ds, joint_covariance_ds)
    squashed_dp = _chain(joint_mean_dp, joint_covariance_dp)

    # d vec([I Q] R) = (I ⊗ [I Q]) d vec(R) + (R[j]' ⊗ I) d vec(Q)
    identity_q_kron = np.kron(eye_e, identity_q)
    r_kron = np.kron(R[j].T, eye_d)

    def _with_io(squashed_d, control_d):
        return squashed_d._replace(
            inv_in_cov_io_cov=identity_q_kron @ squashed_d.inv_in_cov_io_cov
            + r_kron @ control_d.inv_in_cov_io_cov
        )

    return core.ControllerMoments(
        mean=squashed.mean,
        covariance=squashed.covariance,
        inv_in_cov_io_cov=inv_in_cov_io_cov,
        dm=_with_io(squashed_dm, control.dm),
        ds=_with_io(squashed_ds, control.ds),
        dp=_with_io(squashed_dp, control.dp),
    )


class SquashedController:
    """A controller followed by a saturation function.

    Instances follow the controller interface so they can be used wherever a
    controller moment function is expected.

    Attributes:
        controller: Controller moment function.
        saturation: Saturation moment function. If None, it is selected from
            the policy amplitude limits on each call.
        assert_valid: Check the validity of input covariance matrices.
        valid_tolerance: Numerical tolerance on validity checks.
    """

    def __init__(
        self, controller, saturation=None, assert_valid=False, valid_tolerance=1e-8
    ):
        self.controller = controller
        self.saturation = saturation
        self.assert_valid = assert_valid
        self.valid_tolerance = valid_tolerance

    def __repr__(self):
        return (
            f"{self.__class__.__name__}("
            f"controller={_name(self.controller)}, "
            f"saturation={_name(self.saturation)})"
        )

    def __call__(self, policy, mean, covariance, with_derivatives=False):
        return concat(
            self.controller,
            self.saturation,
            policy,
            mean,
            covariance,
            with_derivatives=with_derivatives,
            assert_valid=self.assert_valid,
            valid_tolerance=self.valid_tolerance,
        )

    def moments(self, policy, mean, covariance):
        """Control moments without derivatives."""
        return self(policy, mean, covariance, with_derivatives=False)

    def moments_with_jacobians(self, policy, mean, covariance):
        """Control moments and their Jacobians w.r.t. m, s and the policy."""
        return self(policy, mean, covariance, with_derivatives=True)


def _name(fn):
    if fn is None:
        return "None"
    return getattr(fn, "__name__", repr(fn))


def _check_controller_moments(control, input_dim, control_dim, with_derivatives):
    core.check_shape("controller mean", control.mean, (control_dim,))
    core.check_shape(
        "controller covariance", control.covariance, (control_dim, control_dim)
    )
    core.check_shape(
        "controller inv_in_cov_io_cov",
        control.inv_in_cov_io_cov,
        (input_dim, control_dim),
    )
    if not with_derivatives:
        return
    dims = (input_dim, control_dim)
    core.check_jacobians("controller dm", control.dm, dims, input_dim)
    core.check_jacobians("controller ds", control.ds, dims, input_dim ** 2)
    if control.dp is None:
        raise core.DimensionMismatchError("controller dp is missing.")
    num_parameters = np.shape(control.dp.mean)[-1]
    core.check_jacobians("controller dp", control.dp, dims, num_parameters)


def _check_saturation_moments(squashed, joint_dim, control_dim, with_derivatives):
    core.check_shape("saturation mean", squashed.mean, (control_dim,))
    core.check_shape(
        "saturation covariance", squashed.covariance, (control_dim, control_dim)
    )
    core.check_shape(
        "saturation inv_in_cov_io_cov",
        squashed.inv_in_cov_io_cov,
        (joint_dim, control_dim),
    )
    if not with_derivatives:
        return
    dims = (joint_dim, control_dim)
    core.check_jacobians("saturation dm", squashed.dm, dims, joint_dim)
    core.check_jacobians("saturation ds", squashed.ds, dims, joint_dim ** 2)
