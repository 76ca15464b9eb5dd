# File: test_inference.py

import numpy as np
import pytest
import torch

from agptorch import likelihoods
from agptorch.errors import CompatibilityError, ConfigurationError
from agptorch.inference import Analytic, AnalyticSVI, AnalyticVI, \
    check_implementation
from agptorch.optimizers import InverseDecay, VanillaGradDescent


class TestAnalyticVI(object):
    def test_initialize(self):
        template = AnalyticVI(epsilon=1e-3)
        inference = template.initialize(2, 5, 20)
        assert inference is not template
        assert template.num_samples is None
        assert inference.batch_size == 20
        assert inference.rho == 1.0
        assert len(inference.optimizer_eta1) == 2
        assert len(inference.grad_eta2) == 2
        assert inference.grad_eta2[0].shape == (5, 5)
        assert inference.optimizer_eta1[0] is not inference.optimizer_eta1[1]
        assert isinstance(inference.optimizer_eta1[0], VanillaGradDescent)

    def test_sample_minibatch(self):
        inference = AnalyticVI().initialize(1, 5, 20)
        assert np.array_equal(inference.sample_minibatch(), np.arange(20))

    def test_bad_epsilon(self):
        with pytest.raises(ConfigurationError):
            AnalyticVI(epsilon=0.0)

    def test_str(self):
        assert str(AnalyticVI()) == "Analytic Variational Inference"
        assert str(AnalyticSVI(10)) == "Analytic Stochastic Variational Inference"


class TestAnalyticSVI(object):
    def test_init(self):
        inference = AnalyticSVI(10)
        assert inference.stochastic
        assert isinstance(inference.optimizer, InverseDecay)
        with pytest.raises(ConfigurationError):
            AnalyticSVI(0)

    def test_initialize(self):
        inference = AnalyticSVI(10).initialize(1, 5, 40)
        assert inference.batch_size == 10
        assert inference.rho == 4.0
        # Full batch is allowed
        assert AnalyticSVI(40).initialize(1, 5, 40).rho == 1.0
        with pytest.raises(ConfigurationError):
            AnalyticSVI(41).initialize(1, 5, 40)

    def test_sample_minibatch(self):
        np.random.seed(0)
        inference = AnalyticSVI(10).initialize(1, 5, 40)
        idx = inference.sample_minibatch()
        assert len(idx) == 10
        assert len(np.unique(idx)) == 10
        assert idx.min() >= 0 and idx.max() < 40


class TestCompatibility(object):
    @pytest.mark.parametrize(
        "likelihood",
        (
            likelihoods.StudentT(3.0),
            likelihoods.Laplace(),
            likelihoods.Logistic(),
            likelihoods.BayesianSVM(),
            likelihoods.LogisticSoftMax(),
            likelihoods.Poisson(),
            likelihoods.NegBinomial(),
        ),
    )
    def test_augmented(self, likelihood):
        check_implementation("VGP", likelihood, AnalyticVI())
        check_implementation("SVGP", likelihood, AnalyticVI())
        check_implementation("SVGP", likelihood, AnalyticSVI(10))
        with pytest.raises(CompatibilityError):
            check_implementation("VGP", likelihood, AnalyticSVI(10))
        with pytest.raises(CompatibilityError):
            check_implementation("GP", likelihood, Analytic())

    def test_gaussian(self):
        check_implementation("GP", likelihoods.Gaussian(), Analytic())
        check_implementation("SVGP", likelihoods.Gaussian(), AnalyticSVI(10))
        with pytest.raises(CompatibilityError):
            check_implementation("VGP", likelihoods.Gaussian(), AnalyticVI())
        with pytest.raises(CompatibilityError):
            check_implementation("GP", likelihoods.Gaussian(), AnalyticVI())

    def test_softmax(self):
        for kind in ("GP", "VGP", "SVGP"):
            with pytest.raises(CompatibilityError):
                check_implementation(kind, likelihoods.SoftMax(), AnalyticVI())

    def test_message(self):
        with pytest.raises(CompatibilityError) as e:
            check_implementation("VGP", likelihoods.SoftMax(), AnalyticVI())
        assert "SoftMax likelihood" in str(e.value)
        assert "Analytic Variational Inference" in str(e.value)
