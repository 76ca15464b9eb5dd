"""
Negative binomial likelihood

    p(y | f) = Gamma(y + r) / (y! Gamma(r)) sigmoid(f)^y sigmoid(-f)^r

made conjugate with Polya-Gamma variables PG(y + r, c).
"""

import math

import torch

from ..functions import polya_gamma_kl, polya_gamma_mean
from ..util import torch_dtype
from .base import EventLikelihood


class NegBinomial(EventLikelihood):
    def __init__(self, r: float = 10.0):
        """
        :param r: number of failures
        """
        super().__init__()
        if not r > 0.0:
            raise ValueError("r must be positive, got {}".format(r))
        self.r = float(r)
        self.c = None
        self.theta = None
        self._y = None

    def _initialize_augmentation(self, num_latent, num_samples_used):
        self.c = [
            torch.ones(num_samples_used, dtype=torch_dtype)
            for _ in range(num_latent)
        ]
        self.theta = [0.5 * torch.ones_like(c) for c in self.c]

    def local_updates(self, y, mean, var):
        self.c = [torch.sqrt(mk.pow(2) + vk) for mk, vk in zip(mean, var)]
        self.theta = [
            polya_gamma_mean(yk + self.r, ck) for yk, ck in zip(y, self.c)
        ]
        self._y = y

    def grad_mu(self, y):
        return [0.5 * (yk - self.r) for yk in y]

    def grad_sigma(self, y):
        return self.theta

    def expec_log_likelihood(self, y, mean, var):
        return sum(
            (
                torch.lgamma(yk + self.r)
                - torch.lgamma(yk + 1.0)
                - math.lgamma(self.r)
                - (yk + self.r) * math.log(2.0)
                + 0.5 * (yk - self.r) * mk
                - 0.5 * tk * (mk.pow(2) + vk)
            ).sum()
            for yk, mk, vk, tk in zip(y, mean, var, self.theta)
        )

    def augmentation_kl(self):
        y = self._y if self._y is not None else \
            [torch.zeros_like(c) for c in self.c]
        return sum(
            polya_gamma_kl(yk + self.r, ck, tk)
            for yk, ck, tk in zip(y, self.c, self.theta)
        )

    def predict_y(self, mean, var):
        """
        E[y] = r E[exp(f)] (odds sigmoid(f) / sigmoid(-f) = exp(f))
        """
        return self.r * torch.exp(mean + 0.5 * var)

    def proba_y(self, mean, var):
        # Var[y] = E[Var[y|f]] + Var[E[y|f]]
        #        = r E[e^f] + r E[e^2f] + r^2 (E[e^2f] - E[e^f]^2)
        e1 = torch.exp(mean + 0.5 * var)
        e2 = torch.exp(2.0 * mean + 2.0 * var)
        return self.r * e1, self.r * e1 + self.r * e2 + self.r ** 2 * (e2 - e1.pow(2))
