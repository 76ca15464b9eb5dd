# File: optimizers.py

"""
Step-size rules for the natural parameters.

Given the natural gradient of a variational parameter, ``.update()`` returns
the increment to add to it.  The full-batch coordinate ascent uses a step of
size one; stochastic updates use a decaying Robbins-Monro schedule.
"""


class StepSize(object):
    def __init__(self):
        self.num_steps = 0

    def rate(self) -> float:
        raise NotImplementedError()

    def update(self, gradient):
        rate = self.rate()
        self.num_steps += 1
        return rate * gradient


class VanillaGradDescent(StepSize):
    """
    Constant learning rate
    """

    def __init__(self, learning_rate: float = 1.0):
        super().__init__()
        self.learning_rate = learning_rate

    def rate(self):
        return self.learning_rate

    def __repr__(self):
        return "VanillaGradDescent(learning_rate={})".format(self.learning_rate)


class InverseDecay(StepSize):
    """
    rho(t) = (tau + t) ^ -kappa

    Any 0.5 < kappa <= 1 satisfies the Robbins-Monro conditions.
    """

    def __init__(self, tau: float = 100.0, kappa: float = 0.51):
        super().__init__()
        if not 0.5 < kappa <= 1.0:
            raise ValueError("kappa must be in (0.5, 1], got {}".format(kappa))
        self.tau = tau
        self.kappa = kappa

    def rate(self):
        return (self.tau + self.num_steps) ** -self.kappa

    def __repr__(self):
        return "InverseDecay(tau={}, kappa={})".format(self.tau, self.kappa)
