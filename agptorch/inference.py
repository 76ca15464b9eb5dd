"""
Inference engines: exact inference for conjugate GPs and (stochastic)
coordinate ascent on the natural parameters of the variational posterior for
augmented likelihoods.

An inference object passed to a model is a template; ``.initialize()``
returns the copy that the model actually uses.
"""

from copy import deepcopy

import numpy as np
import torch

from .errors import CompatibilityError, ConfigurationError
from .functions import natural_to_moments, symmetrize
from .optimizers import InverseDecay, VanillaGradDescent


class Inference(object):
    """
    Base class.  Holds the convergence criterion, mini-batch bookkeeping and
    the step-size objects of each latent GP.
    """

    def __init__(self, epsilon=1.0e-5, optimizer=None, stochastic=False,
            batch_size=None):
        if not epsilon > 0.0:
            raise ConfigurationError(
                "epsilon must be positive, got {}".format(epsilon)
            )
        self.epsilon = epsilon
        self.num_iter = 0
        self.stochastic = stochastic
        self.optimizer = optimizer if optimizer is not None else \
            VanillaGradDescent(learning_rate=1.0)
        self.num_samples = None
        self.batch_size = batch_size
        self.batch_indices = None
        self.rho = 1.0
        self.optimizer_eta1 = []
        self.optimizer_eta2 = []
        self.grad_eta1 = []
        self.grad_eta2 = []

    def __str__(self):
        return self.__class__.__name__

    def initialize(self, num_latent, num_features, num_samples, batch_size=None):
        """
        :param num_latent: number of latent GPs
        :param num_features: dimension of each variational distribution (N for
            full models, the number of inducing points for sparse ones)
        :param num_samples: number of training data N
        :param batch_size: size of the mini-batches, defaults to (and must
            not exceed) N
        :return: an initialized copy of this object
        """
        inference = deepcopy(self)
        batch_size = batch_size if batch_size is not None else self.batch_size
        if batch_size is None or not inference.stochastic:
            batch_size = num_samples
        if not 0 < batch_size <= num_samples:
            raise ConfigurationError(
                "Mini-batch size must be in (0, {}], got {}".format(
                    num_samples, batch_size
                )
            )
        inference.num_iter = 0
        inference.num_samples = num_samples
        inference.batch_size = batch_size
        inference.batch_indices = np.arange(batch_size)
        inference.rho = num_samples / batch_size
        inference.optimizer_eta1 = [
            deepcopy(self.optimizer) for _ in range(num_latent)
        ]
        inference.optimizer_eta2 = [
            deepcopy(self.optimizer) for _ in range(num_latent)
        ]
        inference.grad_eta1 = [
            torch.zeros(num_features, dtype=torch.double)
            for _ in range(num_latent)
        ]
        inference.grad_eta2 = [
            torch.eye(num_features, dtype=torch.double)
            for _ in range(num_latent)
        ]
        return inference

    def sample_minibatch(self):
        """
        Draw the indices of a new mini-batch, without replacement.
        """
        if self.stochastic:
            self.batch_indices = np.sort(
                np.random.permutation(self.num_samples)[: self.batch_size]
            )
        else:
            self.batch_indices = np.arange(self.num_samples)
        return self.batch_indices

    def variational_updates(self, model):
        raise NotImplementedError()


class Analytic(Inference):
    """
    Exact inference (Gaussian likelihood)
    """

    def __init__(self, epsilon=1.0e-5):
        super().__init__(epsilon=epsilon)

    def __str__(self):
        return "Analytic Inference"

    def variational_updates(self, model):
        model.compute_kernel_matrices()
        model.exact_posterior()


class AnalyticVI(Inference):
    """
    Variational inference for conditionally conjugate likelihoods.

    Each sweep updates the augmentation variables (local step), then sets the
    natural parameters to their optimum given those (global step).  With
    mini-batches the global step is a natural-gradient step scaled by the
    step-size objects.
    """

    def __init__(self, epsilon=1.0e-5, optimizer=None, stochastic=False,
            batch_size=None):
        super().__init__(
            epsilon=epsilon,
            optimizer=optimizer,
            stochastic=stochastic,
            batch_size=batch_size,
        )

    def __str__(self):
        return "Analytic{} Variational Inference".format(
            " Stochastic" if self.stochastic else ""
        )

    def variational_updates(self, model):
        """
        One coordinate-ascent sweep on model
        """
        self.sample_minibatch()
        model.compute_kernel_matrices()
        y = model.batch_targets()
        mean, var = model.batch_marginals()
        model.likelihood.local_updates(y, mean, var)
        self.natural_gradient(model, y)
        self.global_update(model)
        self.num_iter += 1

    def natural_gradient(self, model, y):
        """
        Store in grad_eta1, grad_eta2 the difference between the optimal
        natural parameters (given the local variables) and the current ones.
        """
        grad_mu = model.likelihood.grad_mu(y)
        theta = model.likelihood.grad_sigma(y)
        for k in range(model.num_latent):
            p = model.prior_index(k)
            if model.sparse:
                kappa = model.kappa[p]
                self.grad_eta1[k] = (
                    kappa.t() @ (self.rho * grad_mu[k])
                    + model.invKmm[p] @ model.prior_mean_values[p]
                    - model.eta1[k]
                )
                self.grad_eta2[k] = (
                    -0.5 * (
                        self.rho * kappa.t() @ (theta[k][:, None] * kappa)
                        + model.invKmm[p]
                    )
                    - model.eta2[k]
                )
            else:
                self.grad_eta1[k] = (
                    grad_mu[k]
                    + model.invKnn[p] @ model.prior_mean_values[p]
                    - model.eta1[k]
                )
                self.grad_eta2[k] = (
                    -0.5 * (torch.diag(theta[k]) + model.invKnn[p])
                    - model.eta2[k]
                )

    def global_update(self, model):
        """
        Apply the natural gradients and recover the moments
        """
        eta1, eta2 = [], []
        for k in range(model.num_latent):
            if self.stochastic:
                d1 = self.optimizer_eta1[k].update(self.grad_eta1[k])
                d2 = self.optimizer_eta2[k].update(self.grad_eta2[k])
            else:
                d1, d2 = self.grad_eta1[k], self.grad_eta2[k]
            eta1.append(model.eta1[k] + d1)
            eta2.append(symmetrize(model.eta2[k] + d2))
        moments = [natural_to_moments(e1, e2) for e1, e2 in zip(eta1, eta2)]
        model.eta1, model.eta2 = eta1, eta2
        model.mu = [m[0] for m in moments]
        model.sigma = [m[1] for m in moments]


def AnalyticSVI(batch_size, epsilon=1.0e-5, optimizer=None):
    """
    Stochastic variational inference with mini-batches of batch_size points.

    :param optimizer: step-size object for the natural parameters, defaults
        to InverseDecay()
    """
    if not batch_size > 0:
        raise ConfigurationError(
            "Mini-batch size must be positive, got {}".format(batch_size)
        )
    return AnalyticVI(
        epsilon=epsilon,
        optimizer=optimizer if optimizer is not None else InverseDecay(),
        stochastic=True,
        batch_size=int(batch_size),
    )


_ANALYTIC_VI_LIKELIHOODS = (
    "StudentT",
    "Laplace",
    "Logistic",
    "BayesianSVM",
    "LogisticSoftMax",
    "Poisson",
    "NegBinomial",
)

# model kind -> {likelihood class name: inference class names}
COMPATIBILITY = {
    "GP": {"Gaussian": ("Analytic",)},
    "VGP": {name: ("AnalyticVI",) for name in _ANALYTIC_VI_LIKELIHOODS},
    "SVGP": {
        name: ("AnalyticVI",)
        for name in ("Gaussian",) + _ANALYTIC_VI_LIKELIHOODS
    },
}


def check_implementation(model_kind, likelihood, inference):
    """
    Raise a CompatibilityError unless the (model, likelihood, inference)
    triple is supported.  Stochastic inference is only supported by sparse
    models.
    """
    allowed = COMPATIBILITY.get(model_kind, {}).get(
        likelihood.__class__.__name__, ()
    )
    ok = inference.__class__.__name__ in allowed
    if ok and inference.stochastic and model_kind != "SVGP":
        ok = False
    if not ok:
        raise CompatibilityError(model_kind, likelihood, inference)
