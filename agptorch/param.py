# File: param.py

"""
param.py: hyperparameters stored in an unconstrained space
"""

import numpy as np
import torch
from torch.distributions.transforms import ComposeTransform

from .settings import DefaultPositiveTransform
from .util import torch_dtype


class Param(torch.nn.Parameter):
    """
    A torch.nn.Parameter whose data is the free (unconstrained) value of a
    hyperparameter.  The optimizer moves the free value; ``.transform()``
    maps it back to the constrained value the model uses.

    An optional ``prior`` (a torch.distributions.Distribution over the
    constrained value) enters the hyperparameter loss through
    :meth:`agptorch.model.Model.log_prior`.
    """

    def __new__(cls, data=None, requires_grad=True, transform=None, prior=None):
        transform = Param._validate_transform(transform)
        return super().__new__(cls, transform.inv(data), requires_grad=requires_grad)

    def __init__(self, data, requires_grad=True, transform=None, prior=None):
        super().__init__()
        self._transform = Param._validate_transform(transform)
        self.prior = prior

    @classmethod
    def positive(cls, value, requires_grad=True, prior=None):
        """
        A positive hyperparameter (variances, length scales), at least 1D.
        """
        data = torch.as_tensor(np.atleast_1d(value), dtype=torch_dtype).clone()
        return cls(
            data,
            requires_grad=requires_grad,
            transform=DefaultPositiveTransform(),
            prior=prior,
        )

    def transform(self):
        return self._transform(self)

    def log_prior(self):
        if self.prior is None:
            return 0.0
        return self.prior.log_prob(self.transform()).sum()

    def __deepcopy__(self, memo):
        # torch.nn.Parameter.__deepcopy__ would drop the transform and prior
        if id(self) in memo:
            return memo[id(self)]
        result = Param(self.data.clone(), requires_grad=self.requires_grad)
        result._transform = self._transform
        result.prior = self.prior
        memo[id(self)] = result
        return result

    def __repr__(self):
        return "Param containing:" + self.transform().data.__repr__()

    @staticmethod
    def _validate_transform(t):
        # The empty composition is the identity
        return ComposeTransform([]) if t is None else t
