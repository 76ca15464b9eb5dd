# File: common.py

import numpy as np
import pytest
import torch

from agptorch.functions import is_positive_definite, natural_to_moments
from agptorch.models.base import GPModel


def regression_data(n=30, seed=0):
    rng = np.random.RandomState(seed)
    x = np.linspace(0.0, 1.0, n).reshape((-1, 1))
    y = np.sin(2.0 * np.pi * x).flatten() + 0.1 * rng.randn(n)
    return x, y


def classification_data(n=100, seed=0):
    """
    Labels from the sign of a smooth function of 2D inputs
    """
    rng = np.random.RandomState(seed)
    x = rng.randn(n, 2)
    y = np.sign(np.sin(x[:, 0]) + x[:, 1])
    y[y == 0] = 1.0
    return x, y


def count_data(n=40, seed=0):
    rng = np.random.RandomState(seed)
    x = rng.rand(n, 1)
    y = rng.poisson(5.0 * (1.0 + np.sin(3.0 * x[:, 0]))).astype(np.float64)
    return x, y


def multiclass_data(n=60, seed=0):
    rng = np.random.RandomState(seed)
    y = rng.randint(0, 3, n)
    x = np.stack([np.cos(2.0 * np.pi * y / 3.0), np.sin(2.0 * np.pi * y / 3.0)],
        axis=1) + 0.3 * rng.randn(n, 2)
    return x, y.astype(np.float64)


def check_variational_invariants(model: GPModel):
    """
    mu, sigma must be the moments of the natural parameters, and sigma must
    be symmetric positive definite.
    """
    for mu, sigma, eta1, eta2 in zip(model.mu, model.sigma, model.eta1, model.eta2):
        mu_expected, sigma_expected = natural_to_moments(eta1, eta2)
        assert torch.allclose(mu, mu_expected)
        assert torch.allclose(sigma, sigma_expected)
        assert torch.equal(sigma, sigma.t())
        assert is_positive_definite(sigma)
        assert torch.allclose(mu, sigma @ eta1)


def check_predictions(model: GPModel, x_test: np.ndarray):
    """
    Shapes and types of predict_f for numpy and torch inputs
    """
    n = x_test.shape[0]
    mu, s = model.predict_f(x_test)
    assert isinstance(mu, np.ndarray) and isinstance(s, np.ndarray)
    assert mu.shape == (n, model.num_latent)
    assert s.shape == (n, model.num_latent)
    assert (s >= 0.0).all()

    mu_t = model.predict_f(torch.as_tensor(x_test), covariance=False)
    assert isinstance(mu_t, torch.Tensor)
    assert np.allclose(mu_t.numpy(), mu)

    mu_full, s_full = model.predict_f(x_test, full_covariance=True)
    assert s_full.shape == (model.num_latent, n, n)
    assert np.allclose(mu_full, mu)
    for k in range(model.num_latent):
        assert np.allclose(s_full[k], s_full[k].T)
        assert np.allclose(np.diag(s_full[k]), s[:, k], atol=1e-6)
