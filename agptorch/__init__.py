# File: __init__.py

from . import model
from . import functions
from . import mean_functions
from . import kernels
from . import likelihoods
from . import optimizers
from . import param
from . import settings
from . import util
from . import inference
from . import training

from . import models

from .errors import CompatibilityError, ConfigurationError, \
    DimensionWarning, NumericalDegeneracy
from .inference import Analytic, AnalyticSVI, AnalyticVI
from .models import GP, SVGP, VGP
from .training import TrainingState, train
