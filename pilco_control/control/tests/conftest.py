"""Shared helpers for control tests."""
import numpy as np
import pytest

from pilco_control.utils import numpy as np_utils


def _random_covariance(size, random_state, scale=1.0):
    """A random well conditioned covariance matrix."""
    A = random_state.normal(size=(size, size), scale=scale / np.sqrt(size))
    return A @ A.T + 0.1 * scale ** 2 * np.eye(size)


def _flat(value):
    return np_utils.vec(np.atleast_1d(value))


def _mean_jacobian(fn, mean, step=1e-6):
    """Central difference Jacobian of vec(fn(mean)) w.r.t. a vector."""
    mean = np.asarray(mean, dtype=float)
    columns = []
    for k in range(mean.size):
        delta = np.zeros_like(mean)
        delta[k] = step
        numeric = (_flat(fn(mean + delta)) - _flat(fn(mean - delta))) / (2 * step)
        columns.append(numeric)
    return np.stack(columns, axis=-1)


def _symmetric_directions(size):
    """Symmetric unit perturbation directions of a [size, size] matrix."""
    for a in range(size):
        for b in range(a, size):
            direction = np.zeros((size, size))
            direction[a, b] += 0.5
            direction[b, a] += 0.5
            yield direction


def _check_covariance_jacobian(fn, covariance, jacobian, step=1e-6, rtol=1e-4):
    """Check a covariance Jacobian against central differences.

    Covariance matrices are only perturbed along symmetric directions.

    Args:
        fn: Function of the covariance matrix.
        covariance: Point at which to check the Jacobian. An array [N, N].
        jacobian: Analytic Jacobian of vec(fn) w.r.t. vec(covariance).
    """
    size = covariance.shape[0]
    for direction in _symmetric_directions(size):
        numeric = (
            _flat(fn(covariance + step * direction))
            - _flat(fn(covariance - step * direction))
        ) / (2 * step)
        analytic = jacobian @ np_utils.vec(direction)
        np.testing.assert_allclose(analytic, numeric, rtol=rtol, atol=1e-6)


def _covariance_jacobian(fn, covariance, step=1e-6):
    """Central difference Jacobian w.r.t. each covariance entry independently."""
    covariance = np.asarray(covariance, dtype=float)
    num_rows, num_cols = covariance.shape
    columns = []
    # Column-major order to match vec(covariance)
    for b in range(num_cols):
        for a in range(num_rows):
            delta = np.zeros_like(covariance)
            delta[a, b] = step
            forward = _flat(fn(covariance + delta))
            backward = _flat(fn(covariance - delta))
            columns.append((forward - backward) / (2 * step))
    return np.stack(columns, axis=-1)


@pytest.fixture(
    params=[(2, 1), (3, 2), (1, 1)], ids=lambda dims: "D{}E{}".format(*dims)
)
def dims(request):
    """(input_dim, control_dim) configurations."""
    return request.param


@pytest.fixture
def random_covariance():
    return _random_covariance


@pytest.fixture
def mean_jacobian():
    return _mean_jacobian


@pytest.fixture
def check_covariance_jacobian():
    return _check_covariance_jacobian


@pytest.fixture
def covariance_jacobian():
    return _covariance_jacobian
