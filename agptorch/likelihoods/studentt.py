"""
Student-T noise, augmented as a scale mixture of Gaussians:

    y | f, omega ~ N(f, omega),   omega ~ InvGamma(nu / 2, nu sigma^2 / 2)
"""

import math

import torch

from ..functions import gamma_kl
from ..util import torch_dtype
from .base import RegressionLikelihood


class StudentT(RegressionLikelihood):
    def __init__(self, nu: float, sigma: float = 1.0):
        """
        :param nu: degrees of freedom
        :param sigma: scale of the noise
        """
        super().__init__()
        if not nu > 0.0:
            raise ValueError("nu must be positive, got {}".format(nu))
        if not sigma > 0.0:
            raise ValueError("sigma must be positive, got {}".format(sigma))
        self.nu = float(nu)
        self.sigma = float(sigma)
        self.alpha = 0.5 * (self.nu + 1.0)
        self.beta = None
        self.theta = None

    def _initialize_augmentation(self, num_latent, num_samples_used):
        self.beta = [
            torch.ones(num_samples_used, dtype=torch_dtype)
            for _ in range(num_latent)
        ]
        self.theta = [self.alpha / b for b in self.beta]

    def local_updates(self, y, mean, var):
        nu_s2 = self.nu * self.sigma ** 2
        self.beta = [
            0.5 * (vk + (yk - mk).pow(2) + nu_s2)
            for yk, mk, vk in zip(y, mean, var)
        ]
        self.theta = [self.alpha / b for b in self.beta]

    def grad_mu(self, y):
        return [t * yk for t, yk in zip(self.theta, y)]

    def grad_sigma(self, y):
        return self.theta

    def expec_log_likelihood(self, y, mean, var):
        alpha = torch.tensor(self.alpha, dtype=torch_dtype)
        # E[log omega^-1] = digamma(alpha) - log(beta)
        return sum(
            (
                -0.5 * math.log(2.0 * math.pi)
                - 0.5 * (torch.log(b) - torch.digamma(alpha))
                - 0.5 * t * ((yk - mk).pow(2) + vk)
            ).sum()
            for yk, mk, vk, b, t in zip(y, mean, var, self.beta, self.theta)
        )

    def augmentation_kl(self):
        alpha = torch.tensor(self.alpha, dtype=torch_dtype)
        return sum(
            gamma_kl(alpha, b, 0.5 * self.nu, 0.5 * self.nu * self.sigma ** 2)
            for b in self.beta
        )

    def proba_y(self, mean, var):
        if self.nu > 2.0:
            noise = self.sigma ** 2 * self.nu / (self.nu - 2.0)
        else:
            noise = math.inf
        return mean, var + noise
