# File: test_mean_functions.py

import numpy as np
import pytest
import torch

from agptorch import mean_functions
from agptorch.errors import ConfigurationError
from agptorch.util import torch_dtype


class TestZeroMean(object):
    def test_forward(self):
        n, dx = 5, 3
        y = mean_functions.ZeroMean()(torch.rand(n, dx, dtype=torch_dtype))
        assert isinstance(y, torch.Tensor)
        assert torch.equal(y, torch.zeros(n, dtype=torch_dtype))


class TestConstantMean(object):
    def test_forward(self):
        m = mean_functions.ConstantMean(2.5)
        y = m(torch.rand(4, 2, dtype=torch_dtype))
        assert y.shape == (4,)
        assert torch.allclose(y, 2.5 * torch.ones(4, dtype=torch_dtype))
        assert m.predict(torch.rand(3, 2, dtype=torch_dtype)).shape == (3,)

    def test_trainable(self):
        assert len(list(mean_functions.ConstantMean(1.0).parameters())) == 1
        m = mean_functions.ConstantMean(1.0, trainable=False)
        assert not m.value.requires_grad


class TestEmpiricalMean(object):
    def test_forward(self):
        values = np.array([1.0, 2.0, 3.0])
        m = mean_functions.EmpiricalMean(values)
        y = m(torch.rand(3, 2, dtype=torch_dtype))
        assert np.allclose(y.detach().numpy(), values)

    def test_size_mismatch(self):
        m = mean_functions.EmpiricalMean([1.0, 2.0, 3.0])
        with pytest.raises(ConfigurationError):
            m(torch.rand(4, 2, dtype=torch_dtype))


def test_as_prior_mean():
    assert isinstance(mean_functions.as_prior_mean(None), mean_functions.ZeroMean)
    assert isinstance(mean_functions.as_prior_mean(1.0), mean_functions.ConstantMean)
    assert isinstance(
        mean_functions.as_prior_mean(np.ones(3)), mean_functions.EmpiricalMean
    )
    m = mean_functions.ConstantMean(0.0)
    assert mean_functions.as_prior_mean(m) is m
