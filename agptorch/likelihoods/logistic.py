"""
Logistic (Bernoulli-sigmoid) likelihood for binary classification, made
conjugate with one Polya-Gamma variable per data point:

    sigma(y f) = 1/2 exp(y f / 2) E_{omega ~ PG(1, 0)}[exp(-omega f^2 / 2)]
"""

import math

import torch

from ..functions import gauss_hermite_expectation, polya_gamma_kl, \
    polya_gamma_mean
from ..util import torch_dtype
from .base import ClassificationLikelihood


class Logistic(ClassificationLikelihood):
    def __init__(self):
        super().__init__()
        self.c = None
        self.theta = None

    def _initialize_augmentation(self, num_latent, num_samples_used):
        self.c = [
            torch.ones(num_samples_used, dtype=torch_dtype)
            for _ in range(num_latent)
        ]
        self.theta = [0.5 * torch.ones_like(c) for c in self.c]

    def local_updates(self, y, mean, var):
        self.c = [torch.sqrt(mk.pow(2) + vk) for mk, vk in zip(mean, var)]
        self.theta = [polya_gamma_mean(torch.ones_like(c), c) for c in self.c]

    def grad_mu(self, y):
        return [0.5 * yk for yk in y]

    def grad_sigma(self, y):
        return self.theta

    def expec_log_likelihood(self, y, mean, var):
        return sum(
            (
                -math.log(2.0) + 0.5 * yk * mk - 0.5 * t * (mk.pow(2) + vk)
            ).sum()
            for yk, mk, vk, t in zip(y, mean, var, self.theta)
        )

    def augmentation_kl(self):
        return sum(
            polya_gamma_kl(torch.ones_like(c), c, t)
            for c, t in zip(self.c, self.theta)
        )

    def proba_y(self, mean, var):
        """
        p(y = 1 | x*) = E[sigmoid(f*)] and its Bernoulli variance
        """
        p = gauss_hermite_expectation(torch.sigmoid, mean, var)
        return p, p * (1.0 - p)
