"""
Laplace noise, p(y | f) = exp(-|y - f| / beta) / (2 beta), augmented as a
scale mixture of Gaussians:

    y | f, omega ~ N(f, omega),   omega ~ Exponential(rate = 1 / (2 beta^2))

The posterior of omega is a generalized inverse Gaussian GIG(1/2, 1 / beta^2,
b) with b the expected squared residual, for which E[1 / omega] =
1 / (beta sqrt(b)).
"""

import math

import torch

from ..util import torch_dtype
from .base import RegressionLikelihood


class Laplace(RegressionLikelihood):
    def __init__(self, beta: float = 1.0):
        """
        :param beta: scale of the noise
        """
        super().__init__()
        if not beta > 0.0:
            raise ValueError("beta must be positive, got {}".format(beta))
        self.beta = float(beta)
        self.b = None
        self.theta = None

    def _initialize_augmentation(self, num_latent, num_samples_used):
        self.b = [
            torch.ones(num_samples_used, dtype=torch_dtype)
            for _ in range(num_latent)
        ]
        self.theta = [1.0 / (self.beta * torch.sqrt(b)) for b in self.b]

    def local_updates(self, y, mean, var):
        self.b = [(yk - mk).pow(2) + vk for yk, mk, vk in zip(y, mean, var)]
        self.theta = [1.0 / (self.beta * torch.sqrt(b)) for b in self.b]

    def grad_mu(self, y):
        return [t * yk for t, yk in zip(self.theta, y)]

    def grad_sigma(self, y):
        return self.theta

    def expec_log_likelihood(self, y, mean, var):
        return sum(
            (
                -0.5 * math.log(2.0 * math.pi)
                - 0.5 * t * ((yk - mk).pow(2) + vk)
            ).sum()
            for yk, mk, vk, t in zip(y, mean, var, self.theta)
        )

    def augmentation_kl(self):
        # E_q[log omega / 2] + KL(q(omega) || p(omega)) in closed form: the
        # bound equals -log(2 beta) - sqrt(b) / beta at the optimal q(omega).
        return sum(
            (
                0.5 * torch.sqrt(b) / self.beta
                + math.log(2.0 * self.beta)
                - 0.5 * math.log(2.0 * math.pi)
            ).sum()
            for b in self.b
        )

    def proba_y(self, mean, var):
        return mean, var + 2.0 * self.beta ** 2
