"""
``agptorch.functions`` contains the linear algebra used throughout the
package: jittered Cholesky decompositions and inverses, the conversions
between the moment parameters (mu, Sigma) and the natural parameters
(eta1 = Sigma^-1 mu, eta2 = -0.5 Sigma^-1) of a Gaussian variational factor,
positive-definiteness repair, and a few divergences.
"""

import math

import numpy as np
import torch

from . import settings
from .errors import NumericalDegeneracy
from .util import torch_dtype


def jit_op(
    op, x: torch.Tensor, max_tries: int = 10, verbose: bool = False
) -> torch.Tensor:
    """
    Attempt a potentially-unstable linear algebra operation on a matrix.
    If it fails, then try adding more and more jitter and try again...
    """
    try:
        return op(x)
    except RuntimeError:
        if verbose:
            print("Op {} failed (initial try)".format(op.__name__))

    eye = torch.eye(x.shape[-1], dtype=x.dtype, device=x.device)
    for i in range(max_tries):
        try:
            this_jitter = 10.0 ** (-max_tries + i) * eye
            return op(x + this_jitter)
        except RuntimeError:
            if verbose:
                print(
                    "Op {} failed (try {} / {})".format(op.__name__, i + 1, max_tries)
                )
    raise NumericalDegeneracy("Max tries exceeded.")


def cholesky(x: torch.Tensor) -> torch.Tensor:
    return jit_op(torch.linalg.cholesky, x)


def spd_inverse(x: torch.Tensor) -> torch.Tensor:
    """
    Inverse of a symmetric positive definite matrix through its Cholesky.
    The result is symmetric.
    """
    return symmetrize(torch.cholesky_inverse(cholesky(x)))


def lt_log_determinant(L):
    """
    Log-determinant of a triangular matrix

    Args:
        L (torch.Tensor): Lower-triangular matrix to take log-determinant of.
    """
    return L.diagonal().log().sum()


def trtrs(b: torch.Tensor, a: torch.Tensor, lower=True) -> torch.Tensor:
    """
    Solve ax=b with triangular a.
    """
    return torch.linalg.solve_triangular(a, b, upper=not lower)


def symmetrize(a: torch.Tensor) -> torch.Tensor:
    return 0.5 * (a + a.transpose(-1, -2))


def opt_diag(a: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
    """
    diag(a @ b^T) without forming the product.
    """
    return (a * b).sum(-1)


def opt_trace(a: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
    """
    trace(a @ b^T) without forming the product.
    """
    return (a * b).sum()


def natural_to_moments(eta1: torch.Tensor, eta2: torch.Tensor):
    """
    Recover the mean and covariance of a Gaussian from its natural
    parameters: Sigma = -0.5 inv(eta2), mu = Sigma eta1.

    :raises NumericalDegeneracy: if eta2 is not negative definite
    """
    # No jitter here: a jittered sigma would no longer match eta2
    L, info = torch.linalg.cholesky_ex(-2.0 * eta2)
    if info.item() != 0:
        raise NumericalDegeneracy(
            "eta2 is not negative definite (leading minor of order {})".format(
                info.item()
            )
        )
    sigma = symmetrize(torch.cholesky_inverse(L))
    mu = sigma @ eta1
    return mu, sigma


def moments_to_natural(mu: torch.Tensor, sigma: torch.Tensor):
    """
    eta1 = inv(Sigma) mu, eta2 = -0.5 inv(Sigma)
    """
    precision = spd_inverse(sigma)
    return precision @ mu, -0.5 * precision


def is_positive_definite(a: torch.Tensor) -> bool:
    _, info = torch.linalg.cholesky_ex(a)
    return info.item() == 0


def make_psd(
    sigma: torch.Tensor,
    initial_jitter: float = None,
    max_tries: int = None,
    verbose: bool = False,
) -> torch.Tensor:
    """
    Add a growing diagonal jitter to a covariance matrix until it admits a
    Cholesky factorization.  The jitter doubles at each attempt.

    :raises NumericalDegeneracy: if the matrix is still not positive definite
        after max_tries attempts.
    """
    jitter = settings.psd_initial_jitter if initial_jitter is None else \
        initial_jitter
    max_tries = settings.psd_max_tries if max_tries is None else max_tries

    sigma = symmetrize(sigma)
    if is_positive_definite(sigma):
        return sigma
    eye = torch.eye(sigma.shape[-1], dtype=sigma.dtype, device=sigma.device)
    for i in range(max_tries):
        sigma = sigma + jitter * eye
        if is_positive_definite(sigma):
            if verbose:
                print("Covariance repaired after {} jitter steps".format(i + 1))
            return sigma
        jitter *= 2.0
    raise NumericalDegeneracy(
        "Covariance is still not positive definite after {} jitter "
        "steps".format(max_tries)
    )


def gaussian_kl(mu, mu0, sigma, K):
    """
    KL(N(mu, sigma) || N(mu0, K))

    Differentiable w.r.t. K and mu0 (the prior), which is what the
    hyperparameter updates need.
    """
    n = mu.shape[0]
    chol_k = cholesky(K)
    chol_s = cholesky(sigma)
    diff = (mu - mu0)[:, None]
    alpha = trtrs(diff, chol_k)
    trace = torch.cholesky_solve(sigma, chol_k).diagonal().sum()
    return 0.5 * (
        2.0 * lt_log_determinant(chol_k)
        - 2.0 * lt_log_determinant(chol_s)
        + trace
        + alpha.pow(2).sum()
        - n
    )


def logcosh(x: torch.Tensor) -> torch.Tensor:
    x = x.abs()
    return x + torch.log1p(torch.exp(-2.0 * x)) - math.log(2.0)


def polya_gamma_kl(b, c, theta):
    """
    KL(PG(b, c) || PG(b, 0)), theta = E[omega] under PG(b, c)
    """
    return (b * logcosh(0.5 * c)).sum() - 0.5 * (c.pow(2) * theta).sum()


def gamma_kl(alpha, beta, alpha_p, beta_p):
    """
    KL(Ga(alpha, beta) || Ga(alpha_p, beta_p)) (shape/rate); also the KL of
    the corresponding inverse-gamma distributions.
    """
    alpha_p = torch.as_tensor(alpha_p, dtype=torch_dtype)
    beta_p = torch.as_tensor(beta_p, dtype=torch_dtype)
    return (
        (alpha - alpha_p) * torch.digamma(alpha)
        - torch.lgamma(alpha)
        + torch.lgamma(alpha_p)
        + alpha_p * (torch.log(beta) - torch.log(beta_p))
        + alpha * (beta_p - beta) / beta
    ).sum()


def gauss_hermite_expectation(f, mean, var, num_points=20):
    """
    E[f(x)] for x ~ N(mean, var) (elementwise) by Gauss-Hermite quadrature.
    """
    nodes, weights = np.polynomial.hermite.hermgauss(num_points)
    nodes = torch.as_tensor(nodes, dtype=mean.dtype)
    weights = torch.as_tensor(weights / np.sqrt(np.pi), dtype=mean.dtype)
    std = torch.sqrt(torch.clamp(var, min=0.0))
    x = mean[..., None] + math.sqrt(2.0) * std[..., None] * nodes
    return (f(x) * weights).sum(-1)


def polya_gamma_mean(b, c):
    """
    E[omega] for omega ~ PG(b, c): b / (2c) tanh(c / 2), with its limit b / 4
    at c = 0.
    """
    c_safe = torch.where(c > 1e-8, c, torch.ones_like(c))
    return torch.where(c > 1e-8, 0.5 * b / c_safe * torch.tanh(0.5 * c_safe), 0.25 * b)


def expcosh(x, c):
    """
    exp(x) / cosh(c) for c >= 0 without overflow.
    """
    return 2.0 * torch.exp(x - c) / (1.0 + torch.exp(-2.0 * c))
