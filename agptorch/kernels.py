# File: kernels.py

"""
Covariance functions.

A kernel maps two sets of inputs to their covariance matrix (``.K()``) or the
diagonal of it (``.Kdiag()``).  Hyperparameters are positive
:class:`agptorch.param.Param`s, so derivatives of any quantity built from a
kernel matrix w.r.t. the hyperparameters come from autograd.
"""

import math

import numpy as np
import torch

from .model import Model
from .param import Param
from .util import squared_distance, torch_dtype


def _cross_shape(X, X2):
    n = X.shape[0]
    return (n, n) if X2 is None else (n, X2.shape[0])


class Kernel(Model):
    """
    Kernel on inputs of dimension input_dim.  Kernels can be added and
    multiplied together.
    """

    def __init__(self, input_dim):
        super().__init__()
        self.input_dim = int(input_dim)

    def K(self, X, X2=None):
        """
        :param X: [n x D] inputs
        :param X2: [m x D] inputs, X if None
        :return: [n x m] covariance matrix
        """
        raise NotImplementedError()

    def Kdiag(self, X):
        raise NotImplementedError()

    def __add__(self, other):
        return Sum(self, other)

    def __mul__(self, other):
        return Product(self, other)


class Static(Kernel):
    """
    Input-independent kernels, parametrized by a variance only
    """

    def __init__(self, input_dim, variance=1.0):
        super().__init__(input_dim)
        self.variance = Param.positive(variance)

    def Kdiag(self, X):
        return self.variance.transform().expand(X.shape[0])


class White(Static):
    """
    Independent noise: variance on the diagonal of K(X), zero elsewhere
    """

    def K(self, X, X2=None):
        if X2 is not None:
            return torch.zeros(*_cross_shape(X, X2), dtype=torch_dtype)
        return torch.diag(self.Kdiag(X))


class Constant(Static):
    def K(self, X, X2=None):
        return self.variance.transform().expand(*_cross_shape(X, X2))


class Stationary(Kernel):
    """
    k(x, x') = variance * profile(r), with r the distance between x and x'
    scaled by the length scale(s).

    Subclasses implement ``profile_r2`` (a function of r^2) or ``profile``
    (a function of r).
    """

    def __init__(self, input_dim, variance=1.0, length_scales=1.0, ARD=False):
        """
        Args:
            input_dim (int): dimension of the inputs
            variance (float): signal variance
            length_scales (float or array): one value, or one per input
                dimension with ARD
            ARD (bool): automatic relevance determination
        """
        super().__init__(input_dim)
        self.ARD = ARD
        if length_scales is None:
            length_scales = 1.0
        if ARD:
            length_scales = np.atleast_1d(np.asarray(length_scales, dtype=float))
            if length_scales.size == 1:
                length_scales = np.repeat(length_scales, input_dim)
            if length_scales.shape != (input_dim,):
                raise ValueError(
                    "Expected {} length scales, got {}".format(
                        input_dim, length_scales.size
                    )
                )
        self.variance = Param.positive(variance)
        self.length_scales = Param.positive(length_scales)

    def scaled_squared_distance(self, X, X2=None):
        ell = self.length_scales.transform()
        return squared_distance(X / ell, None if X2 is None else X2 / ell)

    def profile_r2(self, r2):
        # Floor r^2 so that d sqrt(r^2) stays finite at r = 0
        return self.profile(torch.sqrt(torch.clamp(r2, min=1e-40)))

    def profile(self, r):
        raise NotImplementedError()

    def K(self, X, X2=None):
        return self.variance.transform() * self.profile_r2(
            self.scaled_squared_distance(X, X2)
        )

    def Kdiag(self, X):
        return self.variance.transform().expand(X.shape[0])


class Rbf(Stationary):
    """
    Squared exponential: exp(-r^2 / 2)
    """

    def profile_r2(self, r2):
        return torch.exp(-0.5 * r2)


SquaredExponential = Rbf


class Exp(Stationary):
    """
    Exponential (Matern 1/2): exp(-r)
    """

    def profile(self, r):
        return torch.exp(-r)


Matern12 = Exp


class Matern32(Stationary):
    def profile(self, r):
        r3 = math.sqrt(3.0) * r
        return (1.0 + r3) * torch.exp(-r3)


class Matern52(Stationary):
    def profile(self, r):
        r5 = math.sqrt(5.0) * r
        return (1.0 + r5 + r5 * r5 / 3.0) * torch.exp(-r5)


class Linear(Kernel):
    """
    k(x, x') = sum_d variance_d x_d x'_d
    """

    def __init__(self, input_dim, variance=1.0, ARD=False):
        super().__init__(input_dim)
        self.ARD = ARD
        if ARD:
            variance = np.asarray(variance, dtype=float) * np.ones(input_dim)
        self.variance = Param.positive(variance)

    def K(self, X, X2=None):
        scaled = X * self.variance.transform()
        return scaled @ (X if X2 is None else X2).t()

    def Kdiag(self, X):
        return (X.pow(2) * self.variance.transform()).sum(dim=1)


class Combination(Kernel):
    """
    Pointwise combination of two kernels on the same inputs
    """

    def __init__(self, kern1, kern2):
        if kern1.input_dim != kern2.input_dim:
            raise ValueError(
                "Cannot combine kernels with input dimensions {} and {}".format(
                    kern1.input_dim, kern2.input_dim
                )
            )
        super().__init__(kern1.input_dim)
        self.kern1 = kern1
        self.kern2 = kern2

    def combine(self, a, b):
        raise NotImplementedError()

    def K(self, X, X2=None):
        return self.combine(self.kern1.K(X, X2), self.kern2.K(X, X2))

    def Kdiag(self, X):
        return self.combine(self.kern1.Kdiag(X), self.kern2.Kdiag(X))


class Sum(Combination):
    def combine(self, a, b):
        return a + b


class Product(Combination):
    def combine(self, a, b):
        return a * b
