"""
Training loop: alternates variational sweeps and hyperparameter steps until
the variational parameters stop moving or the iteration budget runs out.
"""

from enum import Enum
from numbers import Integral
from time import time

import torch

from .errors import ConfigurationError, NumericalDegeneracy


class TrainingState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    CONVERGED = "converged"
    FAILED = "failed"


def _relative_change(new, old):
    return (torch.norm(new - old) / torch.clamp(torch.norm(old), min=1.0e-12)).item()


def convergence(model, prev_mu, prev_sigma_diag):
    """
    Mean (over latent GPs) relative change of the posterior means and
    variances since the last iteration.
    """
    changes = [
        0.5 * (
            _relative_change(mu, pm)
            + _relative_change(torch.diagonal(sigma), ps)
        )
        for mu, sigma, pm, ps in zip(
            model.mu, model.sigma, prev_mu, prev_sigma_diag
        )
    ]
    return sum(changes) / len(changes)


def train(model, iterations=100):
    """
    Train a model for at most `iterations` sweeps.

    :param model: an agptorch.models.GPModel
    :param iterations: maximum number of iterations (positive integer)
    :return: (bool) True if training completed (converged or budget
        exhausted), False if it was interrupted by the user.
    :raises NumericalDegeneracy: if a covariance matrix could not be repaired
    """
    if isinstance(iterations, bool) or not isinstance(iterations, Integral) or \
            iterations <= 0:
        raise ConfigurationError(
            "Number of iterations must be a positive integer, got {}".format(
                iterations
            )
        )
    inference = model.inference
    if model.verbose > 0:
        print(
            "Starting training of {} with {} samples, {} dimensions and {} "
            "latent GPs".format(
                model, model.num_samples, model.num_dim, model.num_latent
            )
        )
    model.state = TrainingState.RUNNING
    tic = time()
    local_iter = 1
    conv = float("inf")
    try:
        while True:
            prev_mu = [mu.clone() for mu in model.mu]
            prev_sigma_diag = [torch.diagonal(s).clone() for s in model.sigma]

            model.update_parameters()
            if model.autotuning and local_iter % model.atfrequency == 0:
                model.update_hyperparameters()

            if model.verbose > 2 or (model.verbose > 1 and local_iter % 10 == 0):
                print(
                    "Iteration : {}, ELBO is : {}".format(
                        local_iter, model.elbo().item()
                    )
                )

            if not inference.stochastic:
                conv = convergence(model, prev_mu, prev_sigma_diag)
                if conv < inference.epsilon:
                    break
            if local_iter >= iterations:
                break
            local_iter += 1
    except NumericalDegeneracy:
        model.state = TrainingState.FAILED
        raise
    except KeyboardInterrupt:
        print(
            "Training interrupted by user at iteration {}".format(local_iter)
        )
        model.state = TrainingState.IDLE
        return False

    model.state = TrainingState.CONVERGED
    model.trained = True
    if model.verbose > 0:
        print(
            "Training ended after {} iterations ({:.2f} s). Convergence "
            "criterion: {}".format(local_iter, time() - tic, conv)
        )
    return True
