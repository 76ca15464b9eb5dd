"""
Gaussian noise, already conjugate: no augmentation.
"""

import math
from warnings import warn

import numpy as np
import torch

from ..errors import DimensionWarning
from ..util import torch_dtype
from .base import RegressionLikelihood


class Gaussian(RegressionLikelihood):
    """
    p(y|f) = N(y | f, epsilon)

    The noise variance epsilon (one per latent GP) is re-estimated in closed
    form at each local update of sparse models.
    """

    def __init__(self, variance=1.0e-3):
        """
        :param variance: noise variance, a number or one value per latent GP
        """
        super().__init__()
        self._init_variance = np.atleast_1d(np.asarray(variance, dtype=np.float64))
        if (self._init_variance <= 0.0).any():
            raise ValueError("Noise variance must be positive")
        self.variance = None
        self.theta = None

    def _initialize_augmentation(self, num_latent, num_samples_used):
        values = self._init_variance
        if len(values) != num_latent:
            if len(values) != 1:
                warn(
                    "Wrong dimension of the noise variance: {} (expected {}), "
                    "using the first value only".format(len(values), num_latent),
                    DimensionWarning,
                )
            values = np.repeat(values[0], num_latent)
        self.variance = [torch.tensor(v, dtype=torch_dtype) for v in values]
        self.theta = [
            torch.full((num_samples_used,), 1.0 / v.item(), dtype=torch_dtype)
            for v in self.variance
        ]

    def local_updates(self, y, mean, var):
        # Mean of the expected squared residuals.  On a mini-batch this is the
        # full-batch estimate scaled by rho = N / batch size.
        self.variance = [
            ((yk - mk).pow(2) + vk).mean() for yk, mk, vk in zip(y, mean, var)
        ]
        self.theta = [
            torch.full_like(yk, 1.0) / ek for yk, ek in zip(y, self.variance)
        ]

    def grad_mu(self, y):
        return [yk / ek for yk, ek in zip(y, self.variance)]

    def grad_sigma(self, y):
        return self.theta

    def expec_log_likelihood(self, y, mean, var):
        return -0.5 * sum(
            ((yk - mk).pow(2) + vk).sum() / ek
            + yk.shape[0] * (math.log(2.0 * math.pi) + torch.log(ek))
            for yk, mk, vk, ek in zip(y, mean, var, self.variance)
        )

    def proba_y(self, mean, var):
        noise = torch.stack(self.variance)
        return mean, var + noise
