"""Controller moment functions."""
import dataclasses
import logging

import numpy as np

from pilco_control.utils import numpy as np_utils

from . import core

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, eq=False)
class LinearPolicy:
    """An affine policy u = weights @ x + bias with bounded output amplitude.

    Attributes:
        weights: An array of shape [E, D].
        bias: An array of shape [E].
        max_u: Maximum amplitude of each control dimension after squashing.
            An array of shape [E], or a scalar shared by all dimensions.
            Use `inf` for unbounded controls.

    The free parameters are `[vec(weights); bias]` where vec is the
    column-major vectorization.
    """

    weights: np.ndarray
    bias: np.ndarray
    max_u: np.ndarray

    def __post_init__(self):
        weights = np.atleast_2d(np.asarray(self.weights, dtype=float))
        control_dim = weights.shape[0]
        bias = self.bias
        if bias is None:
            bias = np.zeros(control_dim)
        bias = np.atleast_1d(np.asarray(bias, dtype=float))
        max_u = np.atleast_1d(np.asarray(self.max_u, dtype=float))
        if max_u.size == 1:
            # A single limit applies to every control dimension
            max_u = np.broadcast_to(max_u.reshape(-1), (control_dim,)).copy()
        core.check_shape("bias", bias, (control_dim,))
        core.check_shape("max_u", max_u, (control_dim,))
        # Frozen dataclass; bypass __setattr__ to store the converted arrays.
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "bias", bias)
        object.__setattr__(self, "max_u", max_u)

    @classmethod
    def random(cls, input_dim, control_dim, max_u=1.0, random_state=None):
        """Create a policy with standard normal weights and bias."""
        if random_state is None:
            random_state = np.random
        return cls(
            weights=random_state.normal(size=(control_dim, input_dim)),
            bias=random_state.normal(size=control_dim),
            max_u=np.broadcast_to(max_u, (control_dim,)),
        )

    @property
    def input_dim(self):
        return self.weights.shape[1]

    @property
    def control_dim(self):
        return self.weights.shape[0]

    @property
    def num_parameters(self):
        return self.weights.size + self.bias.size

    @property
    def parameters(self):
        """Flat parameter vector [vec(weights); bias]."""
        return np.concatenate([np_utils.vec(self.weights), self.bias])

    def with_parameters(self, parameters):
        """A copy of this policy with the given flat parameter vector."""
        parameters = np.asarray(parameters, dtype=float)
        core.check_shape("parameters", parameters, (self.num_parameters,))
        num_weights = self.weights.size
        return dataclasses.replace(
            self,
            weights=np_utils.unvec(parameters[:num_weights], self.weights.shape),
            bias=parameters[num_weights:],
        )


def linear_controller(policy, mean, covariance, with_derivatives=False):
    """Moments of a linear controller for a Gaussian input.

    u = W x + b for x ~ N(m, s) where W = `policy.weights`, b = `policy.bias`.

    Args:
        policy: A `LinearPolicy`.
        mean: Input mean m. An array of shape [D].
        covariance: Input covariance s. An array of shape [D, D].
        with_derivatives: Also compute Jacobians with respect to the input
            mean, input covariance and policy parameters.

    Returns:
        A `ControllerMoments` instance.
    """
    # Based off of the file control/conlin.m in the PILCO source.
    W = policy.weights
    control_dim, input_dim = W.shape
    mean, covariance = core.as_mean_covariance(mean, covariance)
    core.check_shape("mean", mean, (input_dim,))

    output_mean = W @ mean + policy.bias
    output_covariance = W @ covariance @ W.T
    # Cov[x, u] = s W'  =>  inv(s) Cov[x, u] = W'
    inv_in_cov_io_cov = W.T

    if not with_derivatives:
        return core.ControllerMoments(
            mean=output_mean,
            covariance=output_covariance,
            inv_in_cov_io_cov=inv_in_cov_io_cov,
        )

    eye_e = np.eye(control_dim)
    num_biases = policy.bias.size

    dm = core.MomentJacobians(
        mean=W,
        covariance=np.zeros((control_dim ** 2, input_dim)),
        inv_in_cov_io_cov=np.zeros((input_dim * control_dim, input_dim)),
    )
    ds = core.MomentJacobians(
        mean=np.zeros((control_dim, input_dim ** 2)),
        # vec(W s W') = (W ⊗ W) vec(s)
        covariance=np.kron(W, W),
        inv_in_cov_io_cov=np.zeros((input_dim * control_dim, input_dim ** 2)),
    )

    # d vec(W s W') = ((W s') ⊗ I) vec(dW) + (I ⊗ (W s)) K vec(dW)
    commutation = np_utils.commutation_matrix(control_dim, input_dim)
    covariance_dw = np.kron(W @ covariance.T, eye_e) + np.kron(
        eye_e, W @ covariance
    ) @ commutation
    dp = core.MomentJacobians(
        mean=np.hstack([np.kron(mean[None, :], eye_e), eye_e]),
        covariance=np.hstack(
            [covariance_dw, np.zeros((control_dim ** 2, num_biases))]
        ),
        inv_in_cov_io_cov=np.hstack(
            [commutation, np.zeros((input_dim * control_dim, num_biases))]
        ),
    )
    return core.ControllerMoments(
        mean=output_mean,
        covariance=output_covariance,
        inv_in_cov_io_cov=inv_in_cov_io_cov,
        dm=dm,
        ds=ds,
        dp=dp,
    )
