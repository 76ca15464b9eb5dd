# File: __init__.py

"""
Core Gaussian process models.

Each model combines latent GPs with a likelihood and an inference engine.

GP implements (exact) Gaussian process regression.

VGP holds a full variational posterior over the latent values at the
training inputs; SVGP a variational posterior over inducing values
(Hensman et al., 2013), which makes it usable with mini-batches.  Both are
trained by closed-form coordinate ascent with augmented likelihoods.
"""

from .base import GPModel
from .gp import GP
from .vgp import VGP
from .svgp import SVGP
