"""Unit tests for control/controllers.py"""
import numpy as np
import pytest

from pilco_control import control
from pilco_control.control import controllers


def _linear_setup(input_dim, control_dim, random_covariance):
    rand = np.random.RandomState(seed=input_dim * 10 + control_dim)
    policy = controllers.LinearPolicy.random(
        input_dim, control_dim, max_u=2.0, random_state=rand
    )
    mean = rand.normal(size=input_dim)
    covariance = random_covariance(input_dim, rand)
    return policy, mean, covariance


def test_linear_policy_parameters_roundtrip():
    policy = controllers.LinearPolicy(
        weights=[[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]], bias=[7.0, 8.0], max_u=[1.0, 1.0]
    )
    assert policy.input_dim == 3
    assert policy.control_dim == 2
    assert policy.num_parameters == 8
    assert policy.parameters == pytest.approx(np.array([1, 4, 2, 5, 3, 6, 7, 8]))

    other = policy.with_parameters(np.arange(8, dtype=float))
    assert other.weights == pytest.approx(np.array([[0, 2, 4], [1, 3, 5]]))
    assert other.bias == pytest.approx(np.array([6, 7]))
    assert other.max_u == pytest.approx(policy.max_u)


def test_linear_policy_default_bias():
    policy = controllers.LinearPolicy(weights=[[1.0, 2.0]], bias=None, max_u=1.0)
    assert policy.bias == pytest.approx(np.array([0.0]))
    assert policy.max_u.shape == (1,)


def test_linear_policy_scalar_max_u_broadcast():
    policy = controllers.LinearPolicy(weights=np.ones((2, 3)), bias=None, max_u=1.5)
    assert policy.max_u == pytest.approx(np.array([1.5, 1.5]))

    policy = controllers.LinearPolicy(weights=np.ones((3, 2)), bias=None, max_u=[2.0])
    assert policy.max_u == pytest.approx(np.array([2.0, 2.0, 2.0]))


def test_linear_policy_bad_max_u_raises():
    with pytest.raises(control.DimensionMismatchError):
        controllers.LinearPolicy(weights=np.ones((2, 3)), bias=None, max_u=[1, 2, 3])


def test_linear_policy_bad_parameters_raises():
    policy = controllers.LinearPolicy(weights=np.ones((2, 3)), bias=None, max_u=1.0)
    with pytest.raises(control.DimensionMismatchError):
        policy.with_parameters(np.zeros(3))


def test_linear_controller_moments(dims, random_covariance):
    policy, mean, covariance = _linear_setup(*dims, random_covariance)
    W = policy.weights

    result = controllers.linear_controller(policy, mean, covariance)
    assert result.mean == pytest.approx(W @ mean + policy.bias)
    assert result.covariance == pytest.approx(W @ covariance @ W.T)
    assert result.inv_in_cov_io_cov == pytest.approx(W.T)
    assert result.dm is None
    assert result.ds is None
    assert result.dp is None


def test_linear_controller_bad_mean_raises():
    policy = controllers.LinearPolicy(weights=np.ones((2, 3)), bias=None, max_u=1.0)
    with pytest.raises(control.DimensionMismatchError):
        controllers.linear_controller(policy, np.zeros(2), np.eye(2))


@pytest.mark.parametrize("name", ["mean", "covariance", "inv_in_cov_io_cov"])
def test_linear_controller_jacobian_mean(
    dims, name, random_covariance, mean_jacobian
):
    policy, mean, covariance = _linear_setup(*dims, random_covariance)
    result = controllers.linear_controller(
        policy, mean, covariance, with_derivatives=True
    )

    def fn(m):
        return getattr(controllers.linear_controller(policy, m, covariance), name)

    np.testing.assert_allclose(
        getattr(result.dm, name), mean_jacobian(fn, mean), rtol=1e-4, atol=1e-6
    )


@pytest.mark.parametrize("name", ["mean", "covariance", "inv_in_cov_io_cov"])
def test_linear_controller_jacobian_covariance(
    dims, name, random_covariance, check_covariance_jacobian
):
    policy, mean, covariance = _linear_setup(*dims, random_covariance)
    result = controllers.linear_controller(
        policy, mean, covariance, with_derivatives=True
    )

    def fn(s):
        return getattr(controllers.linear_controller(policy, mean, s), name)

    check_covariance_jacobian(fn, covariance, getattr(result.ds, name))


@pytest.mark.parametrize("name", ["mean", "covariance", "inv_in_cov_io_cov"])
def test_linear_controller_jacobian_parameters(
    dims, name, random_covariance, mean_jacobian
):
    policy, mean, covariance = _linear_setup(*dims, random_covariance)
    result = controllers.linear_controller(
        policy, mean, covariance, with_derivatives=True
    )

    def fn(p):
        return getattr(
            controllers.linear_controller(
                policy.with_parameters(p), mean, covariance
            ),
            name,
        )

    np.testing.assert_allclose(
        getattr(result.dp, name),
        mean_jacobian(fn, policy.parameters),
        rtol=1e-4,
        atol=1e-6,
    )
