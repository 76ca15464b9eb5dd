# File: mean_functions.py

"""
mean_functions.py: prior means of the latent GPs.

Each mean maps inputs [n x D] to a vector of prior means [n].  Trainable
means are updated together with the kernel hyperparameters.
"""

import numpy as np
import torch

from .errors import ConfigurationError
from .util import as_tensor, torch_dtype


class PriorMean(torch.nn.Module):
    def forward(self, x):
        raise NotImplementedError()

    def predict(self, x):
        """
        Prior mean at new (test) inputs.
        """
        return self(x)


class ZeroMean(PriorMean):
    """
    Zero mean function (default for GPs).
    """

    def forward(self, x):
        return torch.zeros(x.shape[0], dtype=torch_dtype, device=x.device)


class ConstantMean(PriorMean):
    def __init__(self, value: float = 0.0, trainable: bool = True):
        super().__init__()
        self.value = torch.nn.Parameter(
            torch.tensor([float(value)], dtype=torch_dtype),
            requires_grad=trainable,
        )

    def forward(self, x):
        return self.value.expand(x.shape[0])


class EmpiricalMean(PriorMean):
    """
    A vector of prior means at a fixed set of inputs (the training inputs for
    full models, the inducing inputs for sparse ones).
    """

    def __init__(self, values, trainable: bool = True):
        super().__init__()
        values = as_tensor(values).flatten()
        self.values = torch.nn.Parameter(values.clone(), requires_grad=trainable)

    def forward(self, x):
        if not x.shape[0] == self.values.shape[0]:
            raise ConfigurationError(
                "Empirical mean has {} values but was evaluated on {} "
                "inputs".format(self.values.shape[0], x.shape[0])
            )
        return self.values

    def predict(self, x):
        # The empirical values only exist at the inputs they were given for.
        return torch.zeros(x.shape[0], dtype=torch_dtype, device=x.device)


def as_prior_mean(mean) -> PriorMean:
    """
    Promote None, a real number or a vector of values to a prior mean.
    """
    if mean is None:
        return ZeroMean()
    if isinstance(mean, PriorMean):
        return mean
    if np.isscalar(mean):
        return ConstantMean(mean)
    return EmpiricalMean(mean)
