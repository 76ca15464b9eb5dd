# File: errors.py

"""
Exceptions and warnings raised by agptorch.

Configuration and compatibility problems are detected when a model is built;
numerical problems are repaired locally (jitter) and only escalate to
:class:`NumericalDegeneracy` when the repair fails.
"""


class ConfigurationError(ValueError):
    """
    Malformed inputs: shapes, labels, inducing point count, mini-batch size...
    """

    pass


class CompatibilityError(ValueError):
    """
    The requested (likelihood, inference) pair is not implemented for the
    model.
    """

    def __init__(self, model_kind, likelihood, inference):
        self.model_kind = model_kind
        self.likelihood = likelihood
        self.inference = inference
        super().__init__(
            "The {} is not compatible or not implemented with {} for {} "
            "models".format(likelihood, inference, model_kind)
        )


class NumericalDegeneracy(RuntimeError):
    """
    A covariance (or negative precision) matrix is not positive definite,
    even after jitter was added.
    """

    pass


class DimensionWarning(UserWarning):
    pass
