"""Core types and checks for controller moment computations.

Controllers and saturation functions are plain callables.

A controller has the interface

    controller(policy, mean, covariance, with_derivatives=False)
        -> ControllerMoments

mapping an input distribution N(mean, covariance) of dimension D to the
moments of the E dimensional control signal.

A saturation function has the interface

    saturation(mean, covariance, index, max_u, with_derivatives=False)
        -> SaturationMoments

mapping a joint distribution of dimension F to the moments of the squashed
elements `index` (of length E), where `max_u` is the amplitude limit.

All Jacobians are matrices. Rows index the column-major vectorization of the
output and columns index the column-major vectorization of the input.
"""
import typing

import numpy as np


class DimensionMismatchError(ValueError):
    """Arrays have incompatible shapes."""

    pass


class InvalidCovarianceError(ValueError):
    """A covariance matrix is not symmetric positive semi-definite."""

    pass


class MomentJacobians(typing.NamedTuple):
    """Jacobians of a set of moments with respect to a single input.

    Args:
        mean: Jacobian of the output mean. An array of shape [E, N].
        covariance: Jacobian of the output covariance.
            An array of shape [E * E, N].
        inv_in_cov_io_cov: Jacobian of the inverse input covariance times
            input-output covariance. An array of shape [IN_DIM * E, N].

    where N is the size of the (vectorized) input.
    """

    mean: typing.Any
    covariance: typing.Any
    inv_in_cov_io_cov: typing.Any


class ControllerMoments(typing.NamedTuple):
    """Distribution of the control signal for a Gaussian input distribution.

    Args:
        mean: Control mean. An array of shape [E].
        covariance: Control covariance. An array of shape [E, E].
        inv_in_cov_io_cov: Inverse input covariance times input-output
            covariance, inv(s) @ Cov[x, u]. An array of shape [D, E].
        dm: Jacobians with respect to the input mean (N = D).
        ds: Jacobians with respect to the input covariance (N = D * D).
        dp: Jacobians with respect to the policy parameters (N = P).
    """

    mean: typing.Any
    covariance: typing.Any
    inv_in_cov_io_cov: typing.Any
    dm: typing.Optional[MomentJacobians] = None
    ds: typing.Optional[MomentJacobians] = None
    dp: typing.Optional[MomentJacobians] = None


class SaturationMoments(typing.NamedTuple):
    """Distribution of a squashed subset of a joint Gaussian distribution.

    Args:
        mean: Squashed mean. An array of shape [E].
        covariance: Squashed covariance. An array of shape [E, E].
        inv_in_cov_io_cov: Inverse joint covariance times the covariance
            between the joint input and the squashed output.
            An array of shape [F, E].
        dm: Jacobians with respect to the joint mean (N = F).
        ds: Jacobians with respect to the joint covariance (N = F * F).
    """

    mean: typing.Any
    covariance: typing.Any
    inv_in_cov_io_cov: typing.Any
    dm: typing.Optional[MomentJacobians] = None
    ds: typing.Optional[MomentJacobians] = None


def check_shape(name, array, shape):
    """Raise DimensionMismatchError if `array` does not have shape `shape`."""
    actual = np.shape(array)
    if actual != tuple(shape):
        raise DimensionMismatchError(
            f"{name} has shape {actual}, expected {tuple(shape)}."
        )


def check_jacobians(name, jacobians, output_dims, input_size):
    """Check the shapes of a MomentJacobians instance.

    Args:
        name: Name used in error messages.
        jacobians: A `MomentJacobians` instance or None.
        output_dims: Tuple `(in_dim, out_dim)` of the moments being
            differentiated.
        input_size: Size of the vectorized input.
    """
    if jacobians is None:
        raise DimensionMismatchError(f"{name} is missing.")
    in_dim, out_dim = output_dims
    check_shape(f"{name}.mean", jacobians.mean, (out_dim, input_size))
    check_shape(
        f"{name}.covariance", jacobians.covariance, (out_dim * out_dim, input_size)
    )
    check_shape(
        f"{name}.inv_in_cov_io_cov",
        jacobians.inv_in_cov_io_cov,
        (in_dim * out_dim, input_size),
    )


def as_mean_covariance(mean, covariance):
    """Convert an input distribution to float arrays and check their shapes.

    Returns:
        mean: An array of shape [D].
        covariance: An array of shape [D, D].
    """
    mean = np.asarray(mean, dtype=float)
    if mean.ndim == 2 and mean.shape[-1] == 1:
        # Accept column vectors
        mean = mean[:, 0]
    mean = np.atleast_1d(mean)
    if mean.ndim != 1:
        raise DimensionMismatchError(
            f"Mean must be a vector, got an array of shape {mean.shape}."
        )
    size = mean.shape[0]
    covariance = np.atleast_2d(np.asarray(covariance, dtype=float))
    check_shape("covariance", covariance, (size, size))
    return mean, covariance


def assert_valid_covariance(covariance, tolerance=1e-8):
    """Raise InvalidCovarianceError if `covariance` is not symmetric PSD."""
    if not np.allclose(covariance, covariance.T, atol=tolerance):
        raise InvalidCovarianceError("Covariance matrix is not symmetric.")
    eigenvalues = np.linalg.eigvalsh(covariance)
    if np.any(eigenvalues < -tolerance):
        raise InvalidCovarianceError(
            f"Covariance matrix has negative eigenvalues: {eigenvalues}"
        )
    return covariance
