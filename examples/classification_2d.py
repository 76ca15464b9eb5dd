"""
Demonstration of augmented GP classifiers on two interleaved half moons
"""

import os
import sys
from argparse import ArgumentParser

import torch
import matplotlib.pyplot as plt
import numpy as np

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from agptorch import kernels
from agptorch.inference import AnalyticVI, AnalyticSVI
from agptorch.likelihoods import BayesianSVM, Logistic
from agptorch.models import SVGP, VGP

torch.manual_seed(42)
np.random.seed(42)


def moons(n, noise=0.15):
    t = np.pi * np.random.rand(n)
    labels = np.where(np.random.rand(n) < 0.5, 1.0, -1.0)
    x = np.stack([np.cos(t), np.sin(t)], axis=1)
    x[labels < 0] = np.stack(
        [1.0 - np.cos(t[labels < 0]), 0.5 - np.sin(t[labels < 0])], axis=1
    )
    return x + noise * np.random.randn(n, 2), labels


def main(args):
    x, y = moons(200)
    likelihood = BayesianSVM() if args.likelihood == "BayesianSVM" else \
        Logistic()
    kern = kernels.Rbf(2, length_scales=0.5)

    if args.model_type == "VGP":
        model = VGP(x, y, kern, likelihood, AnalyticVI(), verbose=1)
    else:
        model = SVGP(x, y, kern, likelihood, AnalyticSVI(50),
            num_inducing_points=30, verbose=1)

    model.train(iterations=args.iterations)

    error = np.mean(model.predict_y(x).flatten() != y)
    print("Training error: {}".format(error))

    # Show the probability of the positive class
    n_grid = 50
    g1, g2 = np.meshgrid(np.linspace(-1.5, 2.5, n_grid),
        np.linspace(-1.0, 1.5, n_grid))
    x_test = np.stack([g1.flatten(), g2.flatten()], axis=1)
    p, _ = model.proba_y(x_test)

    plt.figure()
    plt.contourf(g1, g2, p.reshape(n_grid, n_grid), levels=20, cmap="RdBu_r")
    plt.colorbar()
    plt.scatter(x[:, 0], x[:, 1], c=y, cmap="RdBu_r", edgecolors="k")
    if args.no_plot:
        plt.close()
    else:
        plt.show()


if __name__ == "__main__":
    parser = ArgumentParser()
    parser.add_argument("--model-type", type=str, choices=("VGP", "SVGP"),
        default="VGP")
    parser.add_argument("--likelihood", type=str,
        choices=("BayesianSVM", "Logistic"), default="BayesianSVM")
    parser.add_argument("--iterations", type=int, default=50)
    parser.add_argument("--no-plot", action="store_true")

    main(parser.parse_args())
