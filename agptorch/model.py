"""
Base module for everything that carries hyperparameters (kernels, prior
means, likelihoods and GP models).
"""

import torch

from .param import Param


class Model(torch.nn.Module):
    """
    A torch.nn.Module whose trainable parameters are hyperparameters,
    optimized by minimizing ``.loss()``.
    """

    def forward(self):
        return None

    def trainable_parameters(self):
        return [p for p in self.parameters() if p.requires_grad]

    def log_prior(self):
        """
        Sum of the log prior densities of the hyperparameters that have one,
        evaluated at their constrained values.
        """
        return sum(
            [p.log_prior() for p in self.parameters() if isinstance(p, Param)],
            0.0,
        )

    def loss(self, *args, **kwargs):
        """
        Objective of the hyperparameter optimizer, implemented by subclasses
        as ``._loss()``.
        """
        return self._loss(*args, **kwargs)

    def _loss(self, *args, **kwargs):
        raise NotImplementedError("Implement loss function")

    def __repr__(self):
        lines = [self.__class__.__name__ + " ("]
        for name, param in self.named_parameters():
            value = param.transform() if isinstance(param, Param) else param
            lines.append("  {}: {}".format(name, value.detach().numpy().tolist()))
        lines.append(")")
        return "\n".join(lines)
