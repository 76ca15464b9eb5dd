# File: test_vgp.py

from copy import deepcopy

import numpy as np
import pytest
import torch

from agptorch import likelihoods
from agptorch.errors import CompatibilityError
from agptorch.inference import AnalyticSVI, AnalyticVI
from agptorch.kernels import Rbf
from agptorch.models import VGP
from agptorch.training import convergence

from common import check_predictions, check_variational_invariants, \
    classification_data, count_data, multiclass_data, regression_data


class TestVGP(object):
    def test_init(self):
        x, y = classification_data(n=20)
        model = VGP(x, y, Rbf(2), likelihoods.BayesianSVM(), AnalyticVI())
        assert model.num_features == 20
        assert model.mu[0].shape == (20,)
        assert torch.equal(model.sigma[0], torch.eye(20, dtype=torch.double))
        assert torch.equal(model.eta2[0], -0.5 * torch.eye(20, dtype=torch.double))
        assert not model.trained

    def test_incompatible(self):
        x, y = classification_data(n=20)
        with pytest.raises(CompatibilityError):
            VGP(x, y, Rbf(2), likelihoods.SoftMax(), AnalyticVI())
        with pytest.raises(CompatibilityError):
            VGP(x, y, Rbf(2), likelihoods.Gaussian(), AnalyticVI())
        with pytest.raises(CompatibilityError):
            VGP(x, y, Rbf(2), likelihoods.Logistic(), AnalyticSVI(10))

    def test_bayesian_svm(self):
        """
        Training error of a BSVM classifier on a smooth decision boundary
        """
        x, y = classification_data()
        model = VGP(x, y, Rbf(2), likelihoods.BayesianSVM(), AnalyticVI())
        assert model.train(50)
        check_variational_invariants(model)

        y_pred = model.predict_y(x).flatten()
        assert np.mean(y_pred != y) < 0.2

    def test_logistic(self):
        x, y = classification_data(n=50)
        model = VGP(x, y, Rbf(2), likelihoods.Logistic(), AnalyticVI())
        model.train(20)
        check_variational_invariants(model)

        p, _ = model.proba_y(x)
        assert ((p >= 0.0) & (p <= 1.0)).all()
        assert np.mean((p.flatten() > 0.5) != (y > 0)) < 0.2
        check_predictions(model, x[:7])

    def test_elbo_increases(self):
        """
        Coordinate ascent with fixed hyperparameters never decreases the ELBO
        """
        x, y = classification_data(n=40)
        model = VGP(x, y, Rbf(2), likelihoods.Logistic(), AnalyticVI(),
            autotuning=False)
        model.update_parameters()
        elbos = [model.elbo().item()]
        for _ in range(5):
            model.update_parameters()
            elbos.append(model.elbo().item())
        assert all([b >= a - 1e-6 * abs(a) for a, b in zip(elbos[:-1], elbos[1:])])

    def test_converged_sweep(self):
        """
        Once converged, another sweep barely moves the variational parameters
        """
        x, y = classification_data(n=40)
        model = VGP(x, y, Rbf(2), likelihoods.Logistic(),
            AnalyticVI(epsilon=1e-5), autotuning=False)
        model.train(500)
        prev_mu = [mu.clone() for mu in model.mu]
        prev_sigma_diag = [torch.diagonal(s).clone() for s in model.sigma]
        model.update_parameters()
        assert convergence(model, prev_mu, prev_sigma_diag) < 1e-4

    def test_inputs_not_mutated(self):
        x, y = classification_data(n=20)
        kern = Rbf(2)
        lik = likelihoods.Logistic()
        inference = AnalyticVI()
        model = VGP(x, y, kern, lik, inference)
        model.train(3)
        assert lik.c is None
        assert inference.num_samples is None
        assert model.kernel[0] is not kern
        assert kern.variance.item() == 0.0

    def test_student_t(self):
        x = np.linspace(0.0, 1.0, 30).reshape((-1, 1))
        y = np.sin(2.0 * np.pi * x).flatten()
        y[5] += 10.0  # outlier
        model = VGP(x, y, Rbf(1, length_scales=0.2), likelihoods.StudentT(3.0, 0.1),
            AnalyticVI(), autotuning=False)
        model.train(30)
        check_variational_invariants(model)
        mu = model.predict_y(x).flatten()
        # Robust to the outlier
        assert abs(mu[5] - y[5]) > 5.0

    def test_laplace(self):
        x, y = regression_data(n=30)
        y[5] += 10.0  # outlier
        model = VGP(x, y, Rbf(1, length_scales=0.2), likelihoods.Laplace(0.1),
            AnalyticVI(), autotuning=False)
        model.train(30)
        check_variational_invariants(model)
        mu = model.predict_y(x).flatten()
        assert abs(mu[5] - y[5]) > 5.0
        assert np.mean(np.abs(np.delete(mu - y, 5))) < 0.3

    def test_multiclass(self):
        x, y = multiclass_data()
        model = VGP(x, y, Rbf(2), likelihoods.LogisticSoftMax(), AnalyticVI())
        assert model.num_latent == 3
        assert len(model.kernel) == 3
        model.train(20)
        check_variational_invariants(model)

        y_pred = model.predict_y(x)
        assert y_pred.shape == (60,)
        assert np.mean(y_pred != y) < 0.2
        p, _ = model.proba_y(x)
        assert p.shape == (60, 3)
        assert np.allclose(p.sum(axis=1), 1.0)

    def test_shared_prior(self):
        x, y = multiclass_data(n=30)
        model = VGP(x, y, Rbf(2), likelihoods.LogisticSoftMax(), AnalyticVI(),
            independent_priors=False)
        assert model.num_prior == 1
        assert len(model.kernel) == 1
        model.train(3)
        check_variational_invariants(model)

    @pytest.mark.parametrize(
        "likelihood", (likelihoods.Poisson(5.0), likelihoods.NegBinomial(5.0))
    )
    def test_counts(self, likelihood):
        x, y = count_data()
        model = VGP(x, y, Rbf(1, length_scales=0.3), likelihood, AnalyticVI())
        model.train(20)
        check_variational_invariants(model)
        y_pred = model.predict_y(x)
        assert (y_pred >= 0.0).all()
        assert np.isfinite(model.elbo().item())
