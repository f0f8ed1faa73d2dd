"""Saturation (squashing) moment functions."""
import logging

import numpy as np

from pilco_control.third_party.pilco import moments as pilco_moments
from pilco_control.utils import numpy as np_utils

from . import core

logger = logging.getLogger(__name__)


def sine_saturation(mean, covariance, index, max_u, with_derivatives=False):
    """Moments of a sine squashing function applied to part of a joint Gaussian.

    u = max_u * (9 sin(z[index]) + sin(3 z[index])) / 8  for z ~ N(mean, covariance)

    This is the third order Fourier approximation of a saturating step,
    bounded by `max_u` and with slope 3/2 `max_u` at zero.

    Args:
        mean: Joint mean. An array of shape [F].
        covariance: Joint covariance. An array of shape [F, F].
        index: Indices of the elements to squash. An array of shape [E].
        max_u: Amplitude limits. An array of shape [E].
        with_derivatives: Also compute Jacobians with respect to the joint
            mean and covariance.

    Returns:
        A `SaturationMoments` instance.
    """
    # Based off of the file util/gSat.m in the PILCO source.
    index = np.atleast_1d(np.asarray(index, dtype=int))
    size = mean.shape[-1]
    num_outputs = len(index)
    max_u = np.atleast_1d(np.asarray(max_u, dtype=float))
    core.check_shape("max_u", max_u, (num_outputs,))

    # Augment the inputs with 3z so that sin(3z) is a sine of a Gaussian.
    # augment: [2F, F]
    augment = np.vstack([np.eye(size), 3 * np.eye(size)])
    augmented_mean = augment @ mean
    augmented_covariance = augment @ covariance @ augment.T

    results = pilco_moments.sin_moments(
        augmented_mean,
        augmented_covariance,
        index=np.concatenate([index, size + index]),
        output_scale=np.concatenate([9 * max_u, max_u]) / 8,
        return_derivatives=with_derivatives,
    )
    sin_mean, sin_covariance, sin_io = results[:3]

    # Sum the 9 sin(z) and sin(3z) terms: [E, 2E]
    combine = np.hstack([np.eye(num_outputs), np.eye(num_outputs)])
    # Chain rule through the augmentation for inv(Σ) Cov[z, u]: [F, 2F]
    augment_t = augment.T

    output_mean = combine @ sin_mean
    output_covariance = combine @ sin_covariance @ combine.T
    output_covariance = (output_covariance + output_covariance.T) / 2
    inv_in_cov_io_cov = augment_t @ sin_io @ combine.T

    if not with_derivatives:
        return core.SaturationMoments(
            mean=output_mean,
            covariance=output_covariance,
            inv_in_cov_io_cov=inv_in_cov_io_cov,
        )

    (
        sin_mean_dm,
        sin_covariance_dm,
        sin_io_dm,
        sin_mean_ds,
        sin_covariance_ds,
        sin_io_ds,
    ) = results[3:]
    # vec(P Σ P') = (P ⊗ P) vec(Σ)
    augment_ds = np.kron(augment, augment)
    combine_cov = np.kron(combine, combine)
    combine_io = np.kron(combine, augment_t)

    dm = core.MomentJacobians(
        mean=combine @ sin_mean_dm @ augment,
        covariance=np_utils.symmetrize_jacobian(
            combine_cov @ sin_covariance_dm @ augment, num_outputs
        ),
        inv_in_cov_io_cov=combine_io @ sin_io_dm @ augment,
    )
    ds = core.MomentJacobians(
        mean=combine @ sin_mean_ds @ augment_ds,
        covariance=np_utils.symmetrize_jacobian(
            combine_cov @ sin_covariance_ds @ augment_ds, num_outputs
        ),
        inv_in_cov_io_cov=combine_io @ sin_io_ds @ augment_ds,
    )
    return core.SaturationMoments(
        mean=output_mean,
        covariance=output_covariance,
        inv_in_cov_io_cov=inv_in_cov_io_cov,
        dm=dm,
        ds=ds,
    )


def no_saturation(mean, covariance, index, max_u=None, with_derivatives=False):
    """Pass-through saturation that selects the elements `index` unchanged.

    Used for controls with unbounded amplitude. `max_u` is ignored.

    Args:
        mean: Joint mean. An array of shape [F].
        covariance: Joint covariance. An array of shape [F, F].
        index: Indices of the elements to select. An array of shape [E].
        max_u: Ignored.
        with_derivatives: Also compute Jacobians with respect to the joint
            mean and covariance.

    Returns:
        A `SaturationMoments` instance.
    """
    del max_u  # Unused
    index = np.atleast_1d(np.asarray(index, dtype=int))
    size = mean.shape[-1]
    num_outputs = len(index)
    selection = np.eye(size)[:, index]

    output_mean = mean[index]
    output_covariance = covariance[np.ix_(index, index)]

    if not with_derivatives:
        return core.SaturationMoments(
            mean=output_mean,
            covariance=output_covariance,
            inv_in_cov_io_cov=selection,
        )

    covariance_ds = np.zeros((num_outputs ** 2, size ** 2))
    covariance_ds[
        np.arange(num_outputs ** 2),
        np_utils.vec_block_indices((size, size), index, index),
    ] = 1
    dm = core.MomentJacobians(
        mean=selection.T,
        covariance=np.zeros((num_outputs ** 2, size)),
        inv_in_cov_io_cov=np.zeros((size * num_outputs, size)),
    )
    ds = core.MomentJacobians(
        mean=np.zeros((num_outputs, size ** 2)),
        covariance=covariance_ds,
        inv_in_cov_io_cov=np.zeros((size * num_outputs, size ** 2)),
    )
    return core.SaturationMoments(
        mean=output_mean,
        covariance=output_covariance,
        inv_in_cov_io_cov=selection,
        dm=dm,
        ds=ds,
    )


def saturation_for(max_u):
    """Select a saturation function suitable for the amplitude limits `max_u`.

    Returns:
        `sine_saturation` if all limits are finite,
        `no_saturation` if all limits are infinite.

    Raises:
        NotImplementedError: If some but not all limits are finite.
    """
    max_u = np.atleast_1d(np.asarray(max_u, dtype=float))
    if np.all(np.isfinite(max_u)):
        saturation = sine_saturation
    elif not np.any(np.isfinite(max_u)):
        saturation = no_saturation
    else:
        raise NotImplementedError("Mixed finite/infinite actions not supported.")
    logger.debug("Selected saturation %s for max_u=%s", saturation.__name__, max_u)
    return saturation
