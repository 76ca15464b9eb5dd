"""
Demonstration of GPs for regression: exact GP, sparse GP with a Gaussian
likelihood and sparse GP with Student-T noise on data with outliers.
"""

import os
import sys
from argparse import ArgumentParser

import torch
import matplotlib.pyplot as plt
import numpy as np

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from agptorch import kernels
from agptorch.inference import Analytic, AnalyticVI, AnalyticSVI
from agptorch.likelihoods import Gaussian, StudentT
from agptorch.models import GP, SVGP

torch.manual_seed(42)
np.random.seed(42)


# Data
def f(x):
    return np.sin(2.0 * np.pi * x) + np.cos(3.5 * np.pi * x) - 3.0 * x + 5.0


def main(args):
    # Create data:
    n = 100
    x = np.linspace(0, 1, n).reshape((-1, 1))
    y = f(x).flatten() + 0.1 * np.random.randn(n)
    if args.model_type == "StudentT":
        # A few outliers
        outliers = np.random.permutation(n)[:5]
        y[outliers] += 3.0 * np.random.randn(5)

    kern = kernels.Rbf(1, length_scales=0.2, variance=10.0)

    # Try different models:
    if args.model_type == "GP":
        model = GP(x, y, kern, Gaussian(0.01), Analytic(), mean=5.0, verbose=1)
    elif args.model_type == "SVGP":
        model = SVGP(x, y, kern, Gaussian(0.01), AnalyticSVI(20),
            num_inducing_points=20, mean=5.0, verbose=1)
    else:
        model = SVGP(x, y, kern, StudentT(3.0, 0.1), AnalyticVI(),
            num_inducing_points=20, mean=5.0, verbose=1)

    # Train
    model.train(iterations=args.iterations)
    print("Trained model:")
    print(model)

    # Predict
    n_test = 200
    x_test = np.linspace(-1, 2, n_test).reshape((-1, 1))
    mu, s = model.proba_y(x_test)
    mu, s = mu.flatten(), s.flatten()
    unc = 2.0 * np.sqrt(s)

    # Show prediction
    x_test = x_test.flatten()
    plt.figure()
    plt.fill_between(x_test, mu - unc, mu + unc, color=(0.9,) * 3)
    plt.plot(x_test, mu)
    plt.plot(x_test, f(x_test))
    plt.plot(x, y, "o")
    if hasattr(model, "Z"):
        z = model.Z[0].detach().cpu().numpy()
        plt.plot(z, 1.0 + plt.ylim()[0] * np.ones(z.shape[0]), "+")
    if args.no_plot:
        plt.close()
    else:
        plt.show()


if __name__ == "__main__":
    parser = ArgumentParser()
    parser.add_argument("--model-type", type=str,
        choices=("GP", "SVGP", "StudentT"), default="GP")
    parser.add_argument("--iterations", type=int, default=100)
    parser.add_argument("--no-plot", action="store_true")

    main(parser.parse_args())
