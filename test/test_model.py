# File: test_model.py

"""
Tests for model.py
"""

import pytest
import torch
from torch.distributions import Gamma, Normal

from agptorch.kernels import Rbf
from agptorch.model import Model
from agptorch.param import Param
from agptorch.util import TensorType, torch_dtype


class _Quadratic(Model):
    """
    Loss (a - 1)^2 plus the negative log prior
    """

    def __init__(self):
        super().__init__()
        self.a = Param(torch.zeros(1, dtype=torch_dtype),
            prior=Normal(0.0, 1.0))
        self.fixed = Param(torch.zeros(1, dtype=torch_dtype), requires_grad=False)

    def _loss(self):
        return (self.a - 1.0).pow(2).sum() - self.log_prior()


class TestModel(object):
    def test_trainable_parameters(self):
        model = _Quadratic()
        params = model.trainable_parameters()
        assert len(params) == 1
        assert params[0] is model.a

    def test_log_prior(self):
        model = _Quadratic()
        log_prior = model.log_prior()
        assert isinstance(log_prior, TensorType)
        assert log_prior.item() == pytest.approx(
            Normal(0.0, 1.0).log_prob(torch.tensor(0.0)).item()
        )

    def test_log_prior_constrained(self):
        """
        Priors apply to the constrained values of nested modules' parameters
        """
        kern = Rbf(1, length_scales=2.0)
        assert kern.log_prior() == 0.0
        kern.length_scales.prior = Gamma(2.0, 1.0)
        expected = Gamma(2.0, 1.0).log_prob(torch.tensor(2.0)).item()
        assert kern.log_prior().item() == pytest.approx(expected)

    def test_loss(self):
        model = _Quadratic()
        optimizer = torch.optim.SGD(model.trainable_parameters(), lr=0.1)
        for _ in range(200):
            optimizer.zero_grad()
            loss = model.loss()
            loss.backward()
            optimizer.step()
        # Minimum of (a - 1)^2 + a^2 / 2
        assert model.a.item() == pytest.approx(2.0 / 3.0, abs=1e-4)

    def test_not_implemented(self):
        with pytest.raises(NotImplementedError):
            Model().loss()

    def test_repr(self):
        s = repr(Rbf(1, variance=2.0))
        assert s.startswith("Rbf")
        assert "variance: [" in s
        assert "length_scales" in s
