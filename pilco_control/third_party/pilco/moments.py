"""Code derived from the PILCO source, adapted to Python by Eric Langlois."""
# Copyright (C) 2018 by Eric Langlois
# Copyright (C) 2008-2013 by
# Marc Deisenroth, Andrew McHutchon, Joe Hall, and Carl Edward Rasmussen.
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without modification, are
# permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice, this list of
# conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright notice, this list
# of conditions and the following disclaimer in the documentation and/or other materials
# provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY MARC DEISENROTH, ANDREW MCHUTCHON, JOE HALL, and CARL
# EDWARD RASMUSSEN ``AS IS'' AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT
# LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR
# PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL MARC DEISENROTH, ANDREW MCHUTCHON, JOE HALL,
# and CARL EDWARD RASMUSSEN OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED
# TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR
# BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY
# WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH
# DAMAGE.
#
# The views and conclusions contained in the software and documentation are those of the
# authors and should not be interpreted as representing official policies, either
# expressed or implied, of Marc Deisenroth, Andrew McHutchon, Joe Hall, and Carl Edward
# Rasmussen.
#
# The code and associated documentation is available from
# http://mlg.eng.cam.ac.uk/pilco/

import numpy as np

from pilco_control.utils import numpy as np_utils


def multivarate_normal_sin_covariance(mean, variance, covariance, output_scale):
    """The covariance of applying sin(x) to each dimension of a MVN distribution.

    Args:
        mean: The mean of the input distribution.
            An array of shape [N]
        variance: The variance of the input distribution.
            An array of shape [N]
        covariance: The covariance of the input distribution.
            An array of shape [N, N]
        output_scale: Scaling factor applied the output of sin(x).
            An array of shape [N]
    """
    # Based off of the file util/gSin.m in the PILCO source.
    lq = -(variance[:, None] + variance[None, :]) / 2
    q = np.exp(lq)

    V = (np.exp(lq + covariance) - q) * np.cos(mean[:, None] - mean[None, :]) - (
        np.exp(lq - covariance) - q
    ) * np.cos(mean[:, None] + mean[None, :])
    output_scale = np.atleast_1d(output_scale)
    return output_scale[:, None] * output_scale[None, :] * V / 2


def sin_moments(mean, covariance, index, output_scale=None, return_derivatives=False):
    """Moments of y = output_scale * sin(x[index]) for x ~ N(mean, covariance).

    Args:
        mean: Input mean. An array of shape [N].
        covariance: Input covariance. An array of shape [N, N].
        index: Distinct integer indices of the inputs to which sin is applied.
            An array of shape [K].
        output_scale: Scaling factor for each output. An array of shape [K].
            Defaults to all ones.
        return_derivatives: Also return the derivatives of the moments with
            respect to `mean` and `covariance`.

    Returns:
        output_mean: An array of shape [K].
        output_covariance: An array of shape [K, K].
        inv_in_cov_io_cov: inv(covariance) @ Cov[x, y]. An array of shape [N, K].

        If `return_derivatives` is true, additionally (column-major vec rows
        and columns):
        output_mean_dm: An array of shape [K, N].
        output_covariance_dm: An array of shape [K * K, N].
        inv_in_cov_io_cov_dm: An array of shape [N * K, N].
        output_mean_ds: An array of shape [K, N * N].
        output_covariance_ds: An array of shape [K * K, N * N].
        inv_in_cov_io_cov_ds: An array of shape [N * K, N * N].
    """
    # Based off of the file util/gSin.m in the PILCO source.
    index = np.asarray(index, dtype=int)
    size = mean.shape[-1]
    num_outputs = len(index)
    if output_scale is None:
        output_scale = np.ones(num_outputs)
    output_scale = np.atleast_1d(np.asarray(output_scale, dtype=float))

    mean_i = mean[index]
    covariance_ii = covariance[np.ix_(index, index)]
    variance_i = np.diagonal(covariance_ii)

    sqrt_exp_neg_var = np.exp(-variance_i / 2)
    output_mean = output_scale * sqrt_exp_neg_var * np.sin(mean_i)
    output_covariance = multivarate_normal_sin_covariance(
        mean=mean_i,
        variance=variance_i,
        covariance=covariance_ii,
        output_scale=output_scale,
    )

    # By Stein's lemma, inv(Σ) Cov[x, f(x)] = E[∇f(x)]
    # which is only non-zero on the indexed rows.
    io_diag = output_scale * sqrt_exp_neg_var * np.cos(mean_i)
    inv_in_cov_io_cov = np.zeros((size, num_outputs))
    inv_in_cov_io_cov[index, np.arange(num_outputs)] = io_diag

    if not return_derivatives:
        return output_mean, output_covariance, inv_in_cov_io_cov

    eye = np.eye(num_outputs)
    # Positions of covariance[index, index] within vec(covariance)
    ii = np_utils.vec_block_indices((size, size), index, index)
    # Positions of inv_in_cov_io_cov[index[k], k] within its vec
    io_rows = index + np.arange(num_outputs) * size
    io_cols = index + index * size

    # Mean
    output_mean_dm = np.zeros((num_outputs, size))
    output_mean_dm[:, index] = np.diag(io_diag)

    # d mean_k / d covariance[index[k], index[k]]
    mean_dsii = -output_mean[:, None, None] / 2 * eye[:, :, None] * eye[:, None, :]
    output_mean_ds = np.zeros((num_outputs, size * size))
    output_mean_ds[:, ii] = np.reshape(
        mean_dsii, (num_outputs, num_outputs ** 2), order="F"
    )

    # Covariance
    # Short names following gSin.m
    # S_kl = c_kl [(exp(lq + s_kl) - q) cos(m_k - m_l)
    #              - (exp(lq - s_kl) - q) cos(m_k + m_l)]
    lq = -(variance_i[:, None] + variance_i[None, :]) / 2
    q = np.exp(lq)
    c = output_scale[:, None] * output_scale[None, :] / 2
    exp_p = np.exp(lq + covariance_ii)
    exp_m = np.exp(lq - covariance_ii)
    diff = mean_i[:, None] - mean_i[None, :]
    total = mean_i[:, None] + mean_i[None, :]

    # Partial derivatives w.r.t. m_k and m_l
    cov_dmk = c * (-(exp_p - q) * np.sin(diff) + (exp_m - q) * np.sin(total))
    cov_dml = c * ((exp_p - q) * np.sin(diff) + (exp_m - q) * np.sin(total))
    cov_dmi = (
        cov_dmk[:, :, None] * eye[:, None, :] + cov_dml[:, :, None] * eye[None, :, :]
    )
    output_covariance_dm = np.zeros((num_outputs ** 2, size))
    output_covariance_dm[:, index] = np.reshape(
        cov_dmi, (num_outputs ** 2, num_outputs), order="F"
    )

    # d S_kl / d lq = S_kl, and lq depends on the diagonal entries k and l.
    cov_ds_kl = c * (exp_p * np.cos(diff) + exp_m * np.cos(total))
    delta_kk = eye[:, None, :, None] * eye[:, None, None, :]
    delta_ll = eye[None, :, :, None] * eye[None, :, None, :]
    delta_kl = eye[:, None, :, None] * eye[None, :, None, :]
    cov_dsii = (
        -output_covariance[:, :, None, None] / 2 * (delta_kk + delta_ll)
        + cov_ds_kl[:, :, None, None] * delta_kl
    )
    output_covariance_ds = np.zeros((num_outputs ** 2, size * size))
    output_covariance_ds[:, ii] = np.reshape(
        cov_dsii, (num_outputs ** 2, num_outputs ** 2), order="F"
    )

    # Input-output covariance
    inv_in_cov_io_cov_dm = np.zeros((size * num_outputs, size))
    inv_in_cov_io_cov_dm[io_rows, index] = -output_mean
    inv_in_cov_io_cov_ds = np.zeros((size * num_outputs, size * size))
    inv_in_cov_io_cov_ds[io_rows, io_cols] = -io_diag / 2

    return (
        output_mean,
        output_covariance,
        inv_in_cov_io_cov,
        output_mean_dm,
        output_covariance_dm,
        inv_in_cov_io_cov_dm,
        output_mean_ds,
        output_covariance_ds,
        inv_in_cov_io_cov_ds,
    )
