"""
Multi-class likelihoods, one latent GP per class.
"""

import torch

from ..functions import polya_gamma_kl, polya_gamma_mean, expcosh
from ..util import torch_dtype
from .base import MultiClassLikelihood


def _sample_probabilities(link, mean, var, num_samples):
    """
    Monte Carlo estimate of E[link(f)] with f ~ N(mean, var), mean and var of
    shape [n x K].
    """
    std = torch.sqrt(torch.clamp(var, min=0.0))
    eps = torch.randn(num_samples, *mean.shape, dtype=mean.dtype)
    p = link(mean + std * eps)
    p_mean = p.mean(0)
    return p_mean, p.var(0, unbiased=False)


class SoftMax(MultiClassLikelihood):
    """
    p(y = k | f) = exp(f_k) / sum_j exp(f_j)

    Not conditionally conjugate: only usable for predictions.
    """

    def __init__(self, num_samples: int = 200):
        super().__init__()
        self.num_samples = num_samples

    def proba_y(self, mean, var):
        return _sample_probabilities(
            lambda f: torch.softmax(f, dim=-1), mean, var, self.num_samples
        )


class LogisticSoftMax(MultiClassLikelihood):
    """
    p(y = k | f) = sigmoid(f_k) / sum_j sigmoid(f_j)

    Made conjugate (Galy-Fajou et al., 2020) with one Gamma variable lambda
    per data point, Poisson counts n_k per class and Polya-Gamma variables.
    """

    def __init__(self, num_samples: int = 200):
        super().__init__()
        self.num_samples = num_samples
        self.alpha = None
        self.beta = None
        self.gamma = None
        self.c = None
        self.theta = None
        self._y = None

    def _initialize_augmentation(self, num_latent, num_samples_used):
        self.beta = float(num_latent)
        self.alpha = torch.full(
            (num_samples_used,), float(num_latent), dtype=torch_dtype
        )
        self.c = [
            torch.ones(num_samples_used, dtype=torch_dtype)
            for _ in range(num_latent)
        ]
        self.gamma = [torch.ones_like(c) for c in self.c]
        self.theta = [0.5 * torch.ones_like(c) for c in self.c]

    def local_updates(self, y, mean, var):
        self.c = [torch.sqrt(mk.pow(2) + vk) for mk, vk in zip(mean, var)]
        self.alpha = torch.full_like(self.c[0], float(self.num_latent))
        for _ in range(2):
            scale = 0.5 / self.beta * torch.exp(torch.digamma(self.alpha))
            self.gamma = [
                scale * expcosh(-0.5 * mk, 0.5 * ck)
                for mk, ck in zip(mean, self.c)
            ]
            self.alpha = 1.0 + sum(self.gamma)
        self.theta = [
            polya_gamma_mean(yk + gk, ck)
            for yk, gk, ck in zip(y, self.gamma, self.c)
        ]
        self._y = y

    def grad_mu(self, y):
        return [0.5 * (yk - gk) for yk, gk in zip(y, self.gamma)]

    def grad_sigma(self, y):
        return self.theta

    def expec_log_likelihood(self, y, mean, var):
        log2 = torch.log(torch.tensor(2.0, dtype=torch_dtype))
        return sum(
            (
                -(yk + gk) * log2
                + 0.5 * (yk - gk) * mk
                - 0.5 * tk * (mk.pow(2) + vk)
            ).sum()
            for yk, gk, mk, vk, tk in zip(y, self.gamma, mean, var, self.theta)
        )

    def augmentation_kl(self):
        y = self._y if self._y is not None else \
            [torch.zeros_like(g) for g in self.gamma]
        log_beta = torch.log(torch.tensor(self.beta, dtype=torch_dtype))
        expec_log_lambda = torch.digamma(self.alpha) - log_beta
        expec_lambda = self.alpha / self.beta
        kl_pg = sum(
            polya_gamma_kl(yk + gk, ck, tk)
            for yk, gk, ck, tk in zip(y, self.gamma, self.c, self.theta)
        )
        kl_poisson = sum(
            (torch.xlogy(gk, gk) - gk - gk * expec_log_lambda).sum()
            for gk in self.gamma
        )
        entropy_gamma = (
            self.alpha
            - log_beta
            + torch.lgamma(self.alpha)
            + (1.0 - self.alpha) * torch.digamma(self.alpha)
        )
        kl_gamma = (self.num_latent * expec_lambda - entropy_gamma).sum()
        return kl_pg + kl_poisson + kl_gamma

    def proba_y(self, mean, var):
        def link(f):
            s = torch.sigmoid(f)
            return s / s.sum(-1, keepdim=True)

        return _sample_probabilities(link, mean, var, self.num_samples)
