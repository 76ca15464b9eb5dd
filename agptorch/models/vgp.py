"""
Variational GP: full Gaussian variational posterior over the latent
function values at the training inputs.
"""

import torch

from .. import settings
from ..functions import gaussian_kl, opt_diag, spd_inverse, symmetrize
from ..util import TensorType, eye
from .base import GPModel


class VGP(GPModel):
    """
    Variational Gaussian Process

    Each latent GP has a variational posterior N(mu, sigma) over its N values
    at the training inputs.  Only full-batch inference is supported.
    """

    model_kind = "VGP"

    def __init__(self, x, y, kernel, likelihood, inference, **kwargs):
        """
        See :class:`agptorch.models.base.GPModel` for the keyword arguments.
        """
        super().__init__(x, y, kernel, likelihood, inference, **kwargs)
        self.Knn = [None] * self.num_prior
        self.invKnn = [None] * self.num_prior
        self._initialize_state(self.num_samples)

    def _kernel_matrix(self, p):
        return self.kernel[p].K(self.X) + settings.jitter * eye(self.num_samples)

    def compute_kernel_matrices(self):
        if not self.hyperparameters_updated:
            return
        with torch.no_grad():
            for p in range(self.num_prior):
                self.Knn[p] = symmetrize(self._kernel_matrix(p))
                self.invKnn[p] = spd_inverse(self.Knn[p])
                self.prior_mean_values[p] = self.mean[p](self.X).detach()
        self.hyperparameters_updated = False

    def batch_marginals(self):
        return self.mu, [torch.diagonal(s) for s in self.sigma]

    def elbo(self):
        kl = 0.0
        for k in range(self.num_latent):
            p = self.prior_index(k)
            kl = kl + gaussian_kl(
                self.mu[k], self.mean[p](self.X), self.sigma[k],
                self._kernel_matrix(p)
            )
        mean, var = self.batch_marginals()
        return (
            self.likelihood.expec_log_likelihood(self.y, mean, var)
            - kl
            - self.likelihood.augmentation_kl()
        )

    def _predict(self, input_new: TensorType, full_covariance=False):
        self.compute_kernel_matrices()
        means, covs = [], []
        for k in range(self.num_latent):
            p = self.prior_index(k)
            k_star = self.kernel[p].K(input_new, self.X)
            A = k_star @ self.invKnn[p]
            mean = self.mean[p].predict(input_new) + \
                A @ (self.mu[k] - self.prior_mean_values[p])
            means.append(mean)
            if full_covariance:
                covs.append(
                    self.kernel[p].K(input_new)
                    - A @ k_star.t()
                    + A @ self.sigma[k] @ A.t()
                )
            else:
                covs.append(
                    self.kernel[p].Kdiag(input_new)
                    - opt_diag(A, k_star)
                    + opt_diag(A @ self.sigma[k], A)
                )
        mean = torch.stack(means, dim=1)
        if full_covariance:
            return mean, torch.stack(covs)
        return mean, torch.clamp(torch.stack(covs, dim=1), min=0.0)
