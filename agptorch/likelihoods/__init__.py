from .base import Likelihood, RegressionLikelihood, ClassificationLikelihood, \
    MultiClassLikelihood, EventLikelihood
from .gaussian import Gaussian
from .studentt import StudentT
from .laplace import Laplace
from .logistic import Logistic
from .bayesiansvm import BayesianSVM
from .softmax import SoftMax, LogisticSoftMax
from .poisson import Poisson
from .negbinomial import NegBinomial
