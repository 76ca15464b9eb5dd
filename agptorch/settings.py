# File: settings.py
# Package-wide defaults

"""
settings.py: defaults shared across the package
"""

from torch.distributions.transforms import ExpTransform

# Constraint used for positive hyperparameters (variances, length scales)
DefaultPositiveTransform = ExpTransform

# Diagonal jitter added to prior covariance matrices before inversion
jitter = 1.0e-6

# Jitter doubling used when repairing predictive covariances
psd_initial_jitter = 1.0e-16
psd_max_tries = 100

# Learning rates for the hyperparameter optimizers (torch.optim names)
default_learning_rates = {
    "SGD": 0.001,
    "Adam": 0.01,
    "LBFGS": 1.0,
    "Adadelta": 1.0,
    "Adagrad": 0.01,
    "Adamax": 0.002,
    "ASGD": 0.01,
    "RMSprop": 0.01,
    "Rprop": 0.01,
}
