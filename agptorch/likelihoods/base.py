"""
Likelihood classes (extend `agptorch.model.Model`).

A likelihood made conditionally conjugate by data augmentation plugs into the
coordinate-ascent loop through a small interface.  Everything is expressed in
terms of the marginals of the variational posterior q(f) on the active
mini-batch, one (mean, variance) pair of vectors per latent GP:

1. ``.local_updates()`` updates the augmentation variables in closed form.
2. ``.grad_mu()`` and ``.grad_sigma()`` return the contribution of the
   expected log-likelihood to the natural parameters: eta1 gets grad_mu and
   eta2 gets -0.5 diag(grad_sigma) (projected through kappa for sparse
   models).
3. ``.expec_log_likelihood()`` and ``.augmentation_kl()`` are the
   likelihood's share of the evidence lower bound.

Targets, means and variances are always lists with one tensor per latent GP.
"""

import numpy as np
import torch

from ..errors import ConfigurationError
from ..model import Model
from ..util import as_tensor, torch_dtype


class Likelihood(Model):
    """
    Base class.  A likelihood passed to a model is only a template; the
    model works on a copy that ``.initialize()`` sizes to the data.
    """

    def __init__(self):
        super().__init__()
        self.num_latent = None
        self.num_samples_used = None

    def __str__(self):
        return "{} likelihood".format(self.__class__.__name__)

    def check_data(self, y):
        """
        Validate the targets and split them into one vector per latent GP.

        :return: (list of torch.Tensor, int) targets and number of latent GPs
        """
        raise NotImplementedError()

    def initialize(self, num_latent: int, num_samples_used: int):
        """
        Allocate the augmentation variables for mini-batches of
        num_samples_used points.
        """
        self.num_latent = num_latent
        self.num_samples_used = num_samples_used
        self._initialize_augmentation(num_latent, num_samples_used)
        return self

    def _initialize_augmentation(self, num_latent, num_samples_used):
        pass

    def local_updates(self, y, mean, var):
        raise NotImplementedError()

    def grad_mu(self, y):
        raise NotImplementedError()

    def grad_sigma(self, y):
        raise NotImplementedError()

    def expec_log_likelihood(self, y, mean, var) -> torch.Tensor:
        raise NotImplementedError()

    def augmentation_kl(self) -> torch.Tensor:
        return torch.zeros((), dtype=torch_dtype)

    def predict_y(self, mean, var):
        raise NotImplementedError()

    def proba_y(self, mean, var):
        raise NotImplementedError()


def _as_vector_or_matrix(y) -> torch.Tensor:
    try:
        y = as_tensor(np.asarray(y)) if not isinstance(y, torch.Tensor) \
            else as_tensor(y)
    except (TypeError, ValueError) as e:
        raise ConfigurationError("Could not read targets: {}".format(e))
    if y.ndimension() not in (1, 2):
        raise ConfigurationError(
            "Targets must be a vector or a matrix, got {} dimensions".format(
                y.ndimension()
            )
        )
    if not torch.isfinite(y).all():
        raise ConfigurationError("Targets contain non-finite values")
    return y


class RegressionLikelihood(Likelihood):
    """
    Real-valued targets.  A matrix of targets [N x K] gives K independent
    latent GPs (multi-output).
    """

    def check_data(self, y):
        y = _as_vector_or_matrix(y)
        if y.ndimension() == 1:
            return [y], 1
        return [yk.clone() for yk in y.t()], y.shape[1]

    def predict_y(self, mean, var):
        return mean


class ClassificationLikelihood(Likelihood):
    """
    Binary classification with labels in {-1, 1}
    """

    def check_data(self, y):
        y = _as_vector_or_matrix(y)
        if y.ndimension() == 2:
            if y.shape[1] != 1:
                raise ConfigurationError(
                    "{} expects a single vector of labels".format(self)
                )
            y = y[:, 0]
        if not ((y == 1.0) | (y == -1.0)).all():
            raise ConfigurationError(
                "{} expects labels in {{-1, 1}}, got {}".format(
                    self, torch.unique(y).tolist()
                )
            )
        return [y], 1

    def predict_y(self, mean, var):
        return torch.where(mean >= 0.0, torch.ones_like(mean), -torch.ones_like(mean))


class MultiClassLikelihood(Likelihood):
    """
    One latent GP per class, targets given as a vector of class labels.
    The latent GP k sees the one-hot indicator of class k.
    """

    def __init__(self):
        super().__init__()
        self.classes = None

    def check_data(self, y):
        y = _as_vector_or_matrix(y)
        if y.ndimension() == 2:
            if y.shape[1] != 1:
                raise ConfigurationError(
                    "{} expects a single vector of labels".format(self)
                )
            y = y[:, 0]
        self.classes = torch.unique(y)
        if self.classes.shape[0] < 2:
            raise ConfigurationError("At least two classes are needed")
        one_hot = [(y == c).to(torch_dtype) for c in self.classes]
        return one_hot, len(one_hot)

    def predict_y(self, mean, var):
        """
        Most likely class label.  mean is [n x K].
        """
        return self.classes[torch.argmax(mean, dim=1)]


class EventLikelihood(Likelihood):
    """
    Counts (non-negative integers)
    """

    def check_data(self, y):
        y = _as_vector_or_matrix(y)
        if y.ndimension() == 2:
            if y.shape[1] != 1:
                raise ConfigurationError(
                    "{} expects a single vector of counts".format(self)
                )
            y = y[:, 0]
        if (y < 0).any() or not torch.equal(y, torch.round(y)):
            raise ConfigurationError(
                "{} expects non-negative integer counts".format(self)
            )
        return [y], 1
