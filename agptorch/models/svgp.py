"""
Sparse variational GP with inducing points, trainable on mini-batches.
"""

import torch

from .. import settings
from ..errors import ConfigurationError
from ..functions import gaussian_kl, opt_diag, spd_inverse, symmetrize
from ..param import Param
from ..util import TensorType, as_tensor, eye, kmeans_centers
from .base import GPModel


class SVGP(GPModel):
    """
    Sparse Variational Gaussian Process

    The variational posterior of each latent GP is N(mu, sigma) over its
    values at M inducing inputs Z.  For a batch of inputs X_b,

        kappa = K(X_b, Z) K(Z, Z)^-1
        K~ = diag(K(X_b, X_b)) - diag(kappa K(Z, X_b))

    so that q(f(X_b)) has means kappa mu and variances
    diag(kappa sigma kappa^T) + K~.

    References:
        Hensman, James, Nicolo Fusi, and Neil D. Lawrence. "Gaussian
        processes for big data." UAI (2013).
    """

    model_kind = "SVGP"
    sparse = True

    def __init__(
        self,
        x,
        y,
        kernel,
        likelihood,
        inference,
        num_inducing_points=None,
        inducing_points=None,
        optimize_inducing_points=False,
        **kwargs
    ):
        """
        Args:
            num_inducing_points (int): M, with 0 < M < N
            inducing_points (np.ndarray, optional): initial Z, M x D.  By
                default the k-means centers of the inputs.
            optimize_inducing_points (bool): treat Z as a hyperparameter

        See :class:`agptorch.models.base.GPModel` for the other keyword
        arguments.
        """
        super().__init__(x, y, kernel, likelihood, inference, **kwargs)

        if inducing_points is not None:
            inducing_points = as_tensor(inducing_points)
            if num_inducing_points is None:
                num_inducing_points = inducing_points.shape[0]
        if num_inducing_points is None:
            raise ConfigurationError("The number of inducing points is required")
        if not 0 < num_inducing_points < self.num_samples:
            raise ConfigurationError(
                "The number of inducing points is incorrect (must be in "
                "(0, {}), got {})".format(self.num_samples, num_inducing_points)
            )
        if inducing_points is None:
            inducing_points = as_tensor(
                kmeans_centers(
                    self.X.numpy(), num_inducing_points, perturb_if_fail=True
                )
            )
        if tuple(inducing_points.shape) != (num_inducing_points, self.num_dim):
            raise ConfigurationError(
                "Inducing points must be a {} x {} matrix, got shape {}".format(
                    num_inducing_points, self.num_dim,
                    tuple(inducing_points.shape)
                )
            )
        self.optimize_inducing_points = optimize_inducing_points
        # Z stands for inducing input points as standard in the literature
        self.Z = torch.nn.ParameterList(
            [
                Param(inducing_points.clone(),
                    requires_grad=optimize_inducing_points)
                for _ in range(self.num_prior)
            ]
        )

        self.Kmm = [None] * self.num_prior
        self.invKmm = [None] * self.num_prior
        self.Knm = [None] * self.num_prior
        self.kappa = [None] * self.num_prior
        self.Ktilde = [None] * self.num_prior
        self._initialize_state(num_inducing_points)

    @property
    def num_inducing(self) -> int:
        """
        Number of inducing points
        """
        return self.num_features

    def _kmm(self, p):
        return self.kernel[p].K(self.Z[p]) + settings.jitter * eye(self.num_inducing)

    def _batch_inputs(self):
        idx = torch.as_tensor(self.inference.batch_indices, dtype=torch.long)
        return self.X[idx]

    def compute_kernel_matrices(self):
        """
        Kmm and its inverse are recomputed after each hyperparameter update;
        the matrices involving the data also change with the mini-batch.
        """
        refresh_batch = self.hyperparameters_updated or self.inference.stochastic
        with torch.no_grad():
            if self.hyperparameters_updated:
                for p in range(self.num_prior):
                    self.Kmm[p] = symmetrize(self._kmm(p))
                    self.invKmm[p] = spd_inverse(self.Kmm[p])
                    self.prior_mean_values[p] = self.mean[p](self.Z[p]).detach()
            if refresh_batch:
                x_batch = self._batch_inputs()
                for p in range(self.num_prior):
                    self.Knm[p] = self.kernel[p].K(x_batch, self.Z[p])
                    self.kappa[p] = self.Knm[p] @ self.invKmm[p]
                    self.Ktilde[p] = torch.clamp(
                        self.kernel[p].Kdiag(x_batch)
                        - opt_diag(self.kappa[p], self.Knm[p]),
                        min=0.0,
                    )
        self.hyperparameters_updated = False

    def _marginals(self, kappa, ktilde):
        mean, var = [], []
        for k in range(self.num_latent):
            p = self.prior_index(k)
            mean.append(kappa[p] @ self.mu[k])
            var.append(opt_diag(kappa[p] @ self.sigma[k], kappa[p]) + ktilde[p])
        return mean, var

    def batch_marginals(self):
        return self._marginals(self.kappa, self.Ktilde)

    def elbo(self):
        x_batch = self._batch_inputs()
        kappa, ktilde = [], []
        kl = 0.0
        kmm = [self._kmm(p) for p in range(self.num_prior)]
        for p in range(self.num_prior):
            knm = self.kernel[p].K(x_batch, self.Z[p])
            kappa_p = knm @ spd_inverse(kmm[p])
            kappa.append(kappa_p)
            ktilde.append(
                torch.clamp(
                    self.kernel[p].Kdiag(x_batch) - opt_diag(kappa_p, knm),
                    min=0.0,
                )
            )
        for k in range(self.num_latent):
            p = self.prior_index(k)
            kl = kl + gaussian_kl(
                self.mu[k], self.mean[p](self.Z[p]), self.sigma[k], kmm[p]
            )
        mean, var = self._marginals(kappa, ktilde)
        # Both batch sums are scaled up to the full data set
        ell = self.likelihood.expec_log_likelihood(self.batch_targets(), mean, var)
        return self.inference.rho * (ell - self.likelihood.augmentation_kl()) - kl

    def _predict(self, input_new: TensorType, full_covariance=False):
        self.compute_kernel_matrices()
        means, covs = [], []
        for k in range(self.num_latent):
            p = self.prior_index(k)
            k_star = self.kernel[p].K(input_new, self.Z[p])
            A = k_star @ self.invKmm[p]
            means.append(
                self.mean[p].predict(input_new)
                + A @ (self.mu[k] - self.prior_mean_values[p])
            )
            B = self.Kmm[p] - self.sigma[k]
            if full_covariance:
                covs.append(self.kernel[p].K(input_new) - A @ B @ A.t())
            else:
                covs.append(
                    self.kernel[p].Kdiag(input_new) - opt_diag(A @ B, A)
                )
        mean = torch.stack(means, dim=1)
        if full_covariance:
            return mean, torch.stack(covs)
        return mean, torch.clamp(torch.stack(covs, dim=1), min=0.0)
