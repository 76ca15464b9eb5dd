"""
Class for exact GP regression.
"""

import math

import torch

from .. import settings
from ..functions import cholesky, lt_log_determinant, moments_to_natural, \
    spd_inverse, symmetrize, trtrs
from ..util import TensorType, eye
from .base import GPModel


class GP(GPModel):
    """
    Gaussian Process Regression with a Gaussian likelihood of fixed noise
    variance.  The posterior over the latent values at the training inputs is
    exact, and the ELBO is the log marginal likelihood.
    """

    model_kind = "GP"

    def __init__(self, x, y, kernel, likelihood, inference, **kwargs):
        """
        See :class:`agptorch.models.base.GPModel` for the keyword arguments.
        """
        super().__init__(x, y, kernel, likelihood, inference, **kwargs)
        self.Knn = [None] * self.num_prior
        self.invKnn = [None] * self.num_latent
        self._initialize_state(self.num_samples)

    @property
    def noise(self):
        return self.likelihood.variance

    def _compute_kyy(self, k):
        """
        Covariance matrix of the observations of latent GP k
        """
        p = self.prior_index(k)
        return (
            self.kernel[p].K(self.X)
            + (settings.jitter + self.noise[k]) * eye(self.num_samples)
        )

    def compute_kernel_matrices(self):
        if not self.hyperparameters_updated:
            return
        with torch.no_grad():
            for p in range(self.num_prior):
                self.Knn[p] = symmetrize(
                    self.kernel[p].K(self.X)
                    + settings.jitter * eye(self.num_samples)
                )
                self.prior_mean_values[p] = self.mean[p](self.X).detach()
            for k in range(self.num_latent):
                self.invKnn[k] = spd_inverse(self._compute_kyy(k))
        self.hyperparameters_updated = False

    def exact_posterior(self):
        """
        Posterior over f at the training inputs:
        mu = mu0 + K (K + eps I)^-1 (y - mu0), sigma = K - K (K + eps I)^-1 K
        """
        for k in range(self.num_latent):
            p = self.prior_index(k)
            K = self.Knn[p]
            A = K @ self.invKnn[k]
            mu0 = self.prior_mean_values[p]
            self.mu[k] = mu0 + A @ (self.y[k] - mu0)
            self.sigma[k] = symmetrize(K - A @ K)
            self.eta1[k], self.eta2[k] = moments_to_natural(
                self.mu[k], self.sigma[k]
            )

    def elbo(self):
        """
        Log marginal likelihood

        Adapted from Rasmussen & Williams, GPML (2006), p. 19, Algorithm 2.1.
        """
        loglik = 0.0
        for k in range(self.num_latent):
            p = self.prior_index(k)
            L = cholesky(self._compute_kyy(k))
            alpha = trtrs((self.y[k] - self.mean[p](self.X))[:, None], L)
            loglik = loglik + (
                -0.5 * alpha.pow(2).sum()
                - lt_log_determinant(L)
                - 0.5 * self.num_samples * math.log(2.0 * math.pi)
            )
        return loglik

    def _predict(self, input_new: TensorType, full_covariance=False):
        """
        This method computes

        .. math::
            p(F^* | Y )

        where F* are points on the GP at input_new, Y are observations at the
        input X of the training data.
        """
        means, covs = [], []
        for k in range(self.num_latent):
            p = self.prior_index(k)
            k_ys = self.kernel[p].K(self.X, input_new)
            L = cholesky(self._compute_kyy(k))
            A = trtrs(k_ys, L)
            V = trtrs((self.y[k] - self.mean[p](self.X))[:, None], L)
            means.append((A.t() @ V)[:, 0] + self.mean[p].predict(input_new))
            if full_covariance:
                covs.append(self.kernel[p].K(input_new) - A.t() @ A)
            else:
                covs.append(self.kernel[p].Kdiag(input_new) - (A * A).sum(0))
        mean = torch.stack(means, dim=1)
        if full_covariance:
            return mean, torch.stack(covs)
        return mean, torch.clamp(torch.stack(covs, dim=1), min=0.0)
