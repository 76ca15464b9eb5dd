# File: base.py

"""
base.py: The core GP model (GP + likelihood + inference)
"""

from copy import deepcopy

import numpy as np
import torch

from .. import settings
from ..errors import ConfigurationError
from ..functions import make_psd
from ..inference import check_implementation
from ..mean_functions import as_prior_mean
from ..model import Model
from ..training import TrainingState, train
from ..util import TensorType, as_tensor, torch_dtype


def input_as_tensor(predict_func):
    """
    Decorator for prediction funtions to ensure that inputs are TensorType and
    on the correct device before passing into GPModel._predict() methods.

    :param predict_func: The public predict funciton to be wrapped
    """

    def predict(obj, input_new, *args, **kwargs):
        from_numpy = isinstance(input_new, np.ndarray)
        if from_numpy:
            input_new = TensorType(np.asarray(input_new, dtype=np.float64))
            input_new = input_new.to(obj.X.device)  # Assume single GPU
        else:
            # Ensure we match device:
            outside_device = input_new.device
            input_new = input_new.to(device=obj.X.device, dtype=torch_dtype)
        if input_new.ndimension() != 2 or input_new.shape[1] != obj.num_dim:
            raise ConfigurationError(
                "Test inputs must be a [n x {}] matrix, got shape {}".format(
                    obj.num_dim, tuple(input_new.shape)
                )
            )
        with torch.no_grad():
            out = predict_func(obj, input_new, *args, **kwargs)
        if from_numpy:
            if isinstance(out, torch.Tensor):
                out = out.detach().cpu().numpy()
            elif isinstance(out, tuple):
                out = tuple([o.detach().cpu().numpy() for o in out])
            else:
                raise NotImplementedError("Unhandled output type {}".format(type(out)))
        else:
            if isinstance(out, torch.Tensor):
                out = out.to(outside_device)
            elif isinstance(out, tuple):
                out = tuple([o.to(outside_device) for o in out])
            else:
                raise NotImplementedError("Unhandled output type {}".format(type(out)))
        return out

    return predict


class GPModel(Model):
    """
    The base class for GP models.

    The variational posterior of latent GP k is N(mu[k], sigma[k]), stored
    along with its natural parameters eta1[k], eta2[k].  Latent GP k uses the
    kernel and prior mean ``prior_index(k)``: its own with independent priors,
    otherwise a shared one.
    """

    model_kind = None
    sparse = False

    def __init__(
        self,
        x,
        y,
        kernel,
        likelihood,
        inference,
        mean=None,
        verbose=0,
        autotuning=True,
        atfrequency=1,
        independent_priors=True,
        optimizer="Adam",
        learning_rate=None,
    ):
        """
        Args:
            x (np.ndarray or TensorType): inputs, N x D
            y (np.ndarray or TensorType): targets, N (or N x K for
                multi-output regression)
            kernel (agptorch.kernels.Kernel): copied for each prior
            likelihood (agptorch.likelihoods.Likelihood)
            inference (agptorch.inference.Inference)
            mean (PriorMean, float or vector, optional): prior mean, zero by
                default
            verbose (int): 0 (silent) to 3 (every iteration)
            autotuning (bool): optimize the hyperparameters during training
            atfrequency (int): number of variational sweeps between two
                hyperparameter steps
            independent_priors (bool): one kernel and mean per latent GP
            optimizer (str): name of the torch.optim optimizer for the
                hyperparameters
            learning_rate (float, optional)
        """
        super().__init__()

        check_implementation(self.model_kind, likelihood, inference)

        x = as_tensor(x) if isinstance(x, (torch.Tensor, np.ndarray)) else \
            as_tensor(np.asarray(x, dtype=np.float64))
        if x.ndimension() != 2:
            raise ConfigurationError(
                "Inputs must be a N x D matrix, got shape {}".format(
                    tuple(x.shape)
                )
            )
        if not torch.isfinite(x).all():
            raise ConfigurationError("Inputs contain non-finite values")
        likelihood = deepcopy(likelihood)
        y, num_latent = likelihood.check_data(y)
        if not y[0].shape[0] == x.shape[0]:
            raise ConfigurationError(
                "X and y must have the same number of data ({} != {})".format(
                    x.shape[0], y[0].shape[0]
                )
            )
        if verbose not in (0, 1, 2, 3):
            raise ConfigurationError(
                "verbose must be 0, 1, 2 or 3, got {}".format(verbose)
            )
        if not int(atfrequency) >= 1:
            raise ConfigurationError(
                "atfrequency must be at least 1, got {}".format(atfrequency)
            )

        self.X = x
        self.y = y
        self.num_samples, self.num_dim = x.shape
        self.num_latent = num_latent
        self.independent_priors = independent_priors
        self.num_prior = num_latent if independent_priors else 1

        self.kernel = torch.nn.ModuleList(
            [deepcopy(kernel) for _ in range(self.num_prior)]
        )
        prior_mean = as_prior_mean(mean)
        self.mean = torch.nn.ModuleList(
            [deepcopy(prior_mean) for _ in range(self.num_prior)]
        )

        self.likelihood = likelihood
        self.inference = inference
        self.verbose = verbose
        self.autotuning = autotuning
        self.atfrequency = int(atfrequency)
        self._optimizer_name = optimizer
        self._learning_rate = learning_rate
        self.optimizer = None

        self.trained = False
        self.state = TrainingState.IDLE
        self.hyperparameters_updated = True

    def _initialize_state(self, num_features):
        """
        Finish the construction once the dimension of the variational
        distributions is known: copies of the inference and likelihood sized
        to the data, and the variational parameters.
        """
        self.num_features = num_features
        self.inference = self.inference.initialize(
            self.num_latent, num_features, self.num_samples
        )
        self.likelihood.initialize(self.num_latent, self.inference.batch_size)

        self.mu = [
            torch.zeros(num_features, dtype=torch_dtype)
            for _ in range(self.num_latent)
        ]
        self.sigma = [
            torch.eye(num_features, dtype=torch_dtype)
            for _ in range(self.num_latent)
        ]
        self.eta1 = [torch.zeros_like(mu) for mu in self.mu]
        self.eta2 = [-0.5 * torch.eye(num_features, dtype=torch_dtype)
            for _ in range(self.num_latent)]
        self.prior_mean_values = [None] * self.num_prior

        if self.autotuning:
            self.optimizer = self._build_optimizer(
                self._optimizer_name, self._learning_rate
            )

    def __str__(self):
        return "{} with a {} infered by {}".format(
            self.__class__.__name__, self.likelihood, self.inference
        )

    def prior_index(self, k):
        return k if self.independent_priors else 0

    def hyperparameters(self):
        return self.trainable_parameters()

    def _build_optimizer(self, method, learning_rate):
        parameters = self.hyperparameters()
        if len(parameters) == 0:
            return None
        if learning_rate is None and method in settings.default_learning_rates:
            learning_rate = settings.default_learning_rates[method]
            if self.inference.stochastic:
                # Noisy ELBO gradients
                learning_rate *= 0.1
        if method == "SGD":
            return torch.optim.SGD(parameters, lr=learning_rate, momentum=0.9)
        elif method == "Adam":
            return torch.optim.Adam(parameters, lr=learning_rate)
        elif method == "LBFGS":
            return torch.optim.LBFGS(
                parameters,
                lr=learning_rate,
                max_iter=5,
                history_size=50,
            )
        elif method == "Adadelta":
            return torch.optim.Adadelta(parameters, lr=learning_rate, rho=0.9)
        elif method == "Adagrad":
            return torch.optim.Adagrad(parameters, lr=learning_rate)
        elif method == "Adamax":
            return torch.optim.Adamax(parameters, lr=learning_rate)
        elif method == "ASGD":
            return torch.optim.ASGD(parameters, lr=learning_rate)
        elif method == "RMSprop":
            return torch.optim.RMSprop(parameters, lr=learning_rate, momentum=0.01)
        elif method == "Rprop":
            return torch.optim.Rprop(parameters, lr=learning_rate)
        else:
            raise ConfigurationError(
                "Optimizer %s is not found. Please choose one of the "
                "following optimizers supported in PyTorch: "
                "Adadelta, Adagrad, Adam, Adamax, ASGD, LBFGS, "
                "RMSprop, Rprop, SGD." % method
            )

    def compute_kernel_matrices(self):
        """
        Refresh the cached kernel matrices (without gradient) used by the
        variational updates.
        """
        raise NotImplementedError()

    def batch_targets(self):
        idx = torch.as_tensor(self.inference.batch_indices, dtype=torch.long)
        return [yk[idx] for yk in self.y]

    def batch_marginals(self):
        """
        Means and variances of q(f) at the points of the current mini-batch,
        one vector per latent GP.
        """
        raise NotImplementedError()

    def update_parameters(self):
        """
        One sweep of the variational (or exact) updates.
        """
        self.inference.variational_updates(self)

    def update_hyperparameters(self):
        """
        One step of the hyperparameter optimizer on -(ELBO + log prior).
        """
        if self.optimizer is None:
            return

        def closure():
            self.optimizer.zero_grad()
            loss = self.loss()
            loss.backward()
            return loss

        if isinstance(self.optimizer, torch.optim.LBFGS):
            self.optimizer.step(closure)
        else:
            closure()
            self.optimizer.step()
        self.hyperparameters_updated = True

    def elbo(self) -> torch.Tensor:
        """
        Evidence lower bound (log marginal likelihood for exact GPs), as a
        differentiable function of the hyperparameters.
        """
        raise NotImplementedError()

    def _loss(self):
        return -(self.elbo() + self.log_prior())

    def train(self, iterations=100):
        """
        See :func:`agptorch.training.train`.

        Note: this shadows torch.nn.Module.train(mode); see :meth:`eval`.
        """
        return train(self, iterations)

    def eval(self):
        """
        No-op.  GP models have no training-only behaviour, and
        torch.nn.Module.eval would call the training loop.
        """
        return self

    def _predict(self, input_new: TensorType, full_covariance=False):
        """
        Predict the latent functions at input_new.

        :return: (TensorType, TensorType): mean [n x K] and either variances
            [n x K] or covariances [K x n x n]
        """
        raise NotImplementedError()

    def _repair_covariances(self, cov):
        return torch.stack(
            [make_psd(c, verbose=self.verbose > 2) for c in cov]
        )

    @input_as_tensor
    def predict_f(self, input_new, covariance=True, full_covariance=False):
        """
        Mean of the latent functions at input_new and, if covariance, their
        variances (or full covariance matrices)

        Args:
            input_new (numpy.ndarray or TensorType)
        """
        mean, cov = self._predict(input_new, full_covariance=full_covariance)
        if not covariance:
            return mean
        if full_covariance:
            cov = self._repair_covariances(cov)
        return mean, cov

    @input_as_tensor
    def predict_y(self, input_new):
        """
        Point predictions: labels for classification, expected values
        otherwise.
        """
        mean, var = self._predict(input_new)
        return self.likelihood.predict_y(mean, var)

    @input_as_tensor
    def proba_y(self, input_new):
        """
        Predictive distribution of the observations: class probabilities and
        their variances for classification, mean and variance otherwise.
        """
        mean, var = self._predict(input_new)
        return self.likelihood.proba_y(mean, var)
