"""
Bayesian SVM pseudo-likelihood (Polson & Scott, 2011):

    L(y | f) = exp(-2 max(1 - y f, 0))

written as a location-scale mixture of Gaussians with one inverse-Gaussian
augmentation variable per data point.
"""

import math

import torch

from ..functions import gauss_hermite_expectation
from ..util import torch_dtype
from .base import ClassificationLikelihood


def _pseudo_likelihood(f):
    return torch.exp(-2.0 * torch.clamp(1.0 - f, min=0.0))


class BayesianSVM(ClassificationLikelihood):
    def __init__(self):
        super().__init__()
        self.omega = None
        self.theta = None

    def _initialize_augmentation(self, num_latent, num_samples_used):
        self.omega = [
            torch.ones(num_samples_used, dtype=torch_dtype)
            for _ in range(num_latent)
        ]
        self.theta = [torch.ones_like(w) for w in self.omega]

    def local_updates(self, y, mean, var):
        self.omega = [
            (1.0 - yk * mk).pow(2) + vk for yk, mk, vk in zip(y, mean, var)
        ]
        self.theta = [1.0 / torch.sqrt(w) for w in self.omega]

    def grad_mu(self, y):
        return [yk * (t + 1.0) for yk, t in zip(y, self.theta)]

    def grad_sigma(self, y):
        return self.theta

    def expec_log_likelihood(self, y, mean, var):
        return sum(
            (
                -0.5 * math.log(2.0 * math.pi)
                - 0.5 * t * ((1.0 - yk * mk).pow(2) + vk)
                - 1.0
                + yk * mk
            ).sum()
            for yk, mk, vk, t in zip(y, mean, var, self.theta)
        )

    def augmentation_kl(self):
        # Makes the bound on E[log L(y|f)] tight at the optimal omega.
        return sum(
            (0.5 * torch.sqrt(w) - 0.5 * math.log(2.0 * math.pi)).sum()
            for w in self.omega
        )

    def proba_y(self, mean, var):
        """
        Probability of the positive class, normalizing the pseudo-likelihood
        over both labels.
        """

        def positive(f):
            p_pos = _pseudo_likelihood(f)
            return p_pos / (p_pos + _pseudo_likelihood(-f))

        p = gauss_hermite_expectation(positive, mean, var)
        return p, p * (1.0 - p)
