# File: test_kernels.py
#
# Tests:
# K(x)
# K(x, x2)
# Transpose
# Kdiag
# Gradients w.r.t. the hyperparameters

import numpy as np
import pytest
import torch

from agptorch import kernels
from agptorch.util import TensorType

ALL_KERNELS = (
    kernels.Rbf,
    kernels.Exp,
    kernels.Matern32,
    kernels.Matern52,
    kernels.Linear,
    kernels.White,
    kernels.Constant,
)


def _inputs():
    rng = np.random.RandomState(0)
    return TensorType(rng.randn(5, 2)), TensorType(rng.randn(4, 2))


@pytest.mark.parametrize("kernel_type", ALL_KERNELS)
class TestKernel(object):
    def test_K(self, kernel_type):
        x1, x2 = _inputs()
        kern = kernel_type(2)
        kx = kern.K(x1)
        kx2 = kern.K(x1, x2)
        kx2t = kern.K(x2, x1)

        assert kx.shape == (5, 5)
        assert kx2.shape == (5, 4)
        # Symmetric K()
        assert torch.allclose(kx, kx.t())
        # Transpose of cross-kernel:
        assert torch.allclose(kx2, kx2t.t())

    def test_Kdiag(self, kernel_type):
        x1, _ = _inputs()
        kern = kernel_type(2)
        assert torch.allclose(kern.Kdiag(x1), torch.diagonal(kern.K(x1)))

    def test_add_mul(self, kernel_type):
        x1, x2 = _inputs()
        kern = kernel_type(2)
        k_sum = kern + kern
        k_prod = kern * kern
        assert torch.allclose(k_sum.K(x1, x2), 2.0 * kern.K(x1, x2))
        assert torch.allclose(k_prod.K(x1, x2), kern.K(x1, x2) ** 2)
        assert torch.allclose(k_sum.Kdiag(x1), 2.0 * kern.Kdiag(x1))


class TestRbf(object):
    def test_values(self):
        kern = kernels.Rbf(1, variance=2.0, length_scales=0.5)
        x1 = TensorType([[0.0], [1.0]])
        k = kern.K(x1)
        assert k[0, 0].item() == pytest.approx(2.0)
        assert k[0, 1].item() == pytest.approx(2.0 * np.exp(-0.5 * 4.0))

    def test_ard(self):
        kern = kernels.Rbf(2, length_scales=[1.0, 2.0], ARD=True)
        assert kern.length_scales.shape == (2,)
        x1 = TensorType([[0.0, 0.0]])
        x2 = TensorType([[1.0, 2.0]])
        assert kern.K(x1, x2).item() == pytest.approx(np.exp(-0.5 * 2.0))

        with pytest.raises(ValueError):
            kernels.Rbf(2, length_scales=[1.0, 2.0, 3.0], ARD=True)

    def test_grad(self):
        """
        Hyperparameter gradients come from autograd
        """
        kern = kernels.Rbf(1)
        x1 = TensorType([[0.0], [1.0]])
        kern.K(x1).sum().backward()
        assert kern.variance.grad is not None
        assert kern.length_scales.grad is not None
        # d/dlog(variance) of sum(K) = sum(K)
        expected = (2.0 + 2.0 * np.exp(-0.5))
        assert kern.variance.grad.item() == pytest.approx(expected)


def test_matern32_values():
    kern = kernels.Matern32(1)
    x1 = TensorType([[0.0]])
    x2 = TensorType([[1.0]])
    r3 = np.sqrt(3.0)
    assert kern.K(x1, x2).item() == pytest.approx((1.0 + r3) * np.exp(-r3))


def test_combination_dims():
    with pytest.raises(ValueError):
        kernels.Rbf(1) + kernels.Rbf(2)
