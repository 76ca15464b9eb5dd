"""
Poisson likelihood with a scaled sigmoid link:

    y | f ~ Poisson(lambda sigmoid(f))

Augmented with latent counts n ~ Poisson(lambda sigmoid(-f)) and Polya-Gamma
variables (Donner & Opper, 2018).  The maximal rate lambda is estimated in
closed form.
"""

import torch

from ..functions import expcosh, gauss_hermite_expectation, polya_gamma_kl, \
    polya_gamma_mean
from ..util import torch_dtype
from .base import EventLikelihood


class Poisson(EventLikelihood):
    def __init__(self, rate: float = 1.0):
        super().__init__()
        if not rate > 0.0:
            raise ValueError("rate must be positive, got {}".format(rate))
        self._init_rate = float(rate)
        self.rate = None
        self.gamma = None
        self.c = None
        self.theta = None
        self._y = None

    def _initialize_augmentation(self, num_latent, num_samples_used):
        self.rate = [
            torch.tensor(self._init_rate, dtype=torch_dtype)
            for _ in range(num_latent)
        ]
        self.c = [
            torch.ones(num_samples_used, dtype=torch_dtype)
            for _ in range(num_latent)
        ]
        self.gamma = [torch.ones_like(c) for c in self.c]
        self.theta = [0.5 * torch.ones_like(c) for c in self.c]

    def local_updates(self, y, mean, var):
        self.c = [torch.sqrt(mk.pow(2) + vk) for mk, vk in zip(mean, var)]
        self.gamma = [
            0.5 * lk * expcosh(-0.5 * mk, 0.5 * ck)
            for lk, mk, ck in zip(self.rate, mean, self.c)
        ]
        self.theta = [
            polya_gamma_mean(yk + gk, ck)
            for yk, gk, ck in zip(y, self.gamma, self.c)
        ]
        self.rate = [(yk + gk).mean() for yk, gk in zip(y, self.gamma)]
        self._y = y

    def grad_mu(self, y):
        return [0.5 * (yk - gk) for yk, gk in zip(y, self.gamma)]

    def grad_sigma(self, y):
        return self.theta

    def expec_log_likelihood(self, y, mean, var):
        log2 = torch.log(torch.tensor(2.0, dtype=torch_dtype))
        return sum(
            (
                (yk + gk) * torch.log(lk)
                - lk
                - torch.lgamma(yk + 1.0)
                - (yk + gk) * log2
                + 0.5 * (yk - gk) * mk
                - 0.5 * tk * (mk.pow(2) + vk)
            ).sum()
            for yk, gk, lk, mk, vk, tk in zip(
                y, self.gamma, self.rate, mean, var, self.theta
            )
        )

    def augmentation_kl(self):
        y = self._y if self._y is not None else \
            [torch.zeros_like(g) for g in self.gamma]
        return sum(
            polya_gamma_kl(yk + gk, ck, tk)
            + (torch.xlogy(gk, gk) - gk).sum()
            for yk, gk, ck, tk in zip(y, self.gamma, self.c, self.theta)
        )

    def predict_y(self, mean, var):
        """
        Expected number of events
        """
        rate = torch.stack(self.rate)
        return rate * gauss_hermite_expectation(torch.sigmoid, mean, var)

    def proba_y(self, mean, var):
        rate = torch.stack(self.rate)
        s1 = gauss_hermite_expectation(torch.sigmoid, mean, var)
        s2 = gauss_hermite_expectation(lambda f: torch.sigmoid(f).pow(2), mean, var)
        return rate * s1, rate * s1 + rate.pow(2) * (s2 - s1.pow(2))
