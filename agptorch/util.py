#
# Utilities: tensor conversion, inducing point initialization, distances...
import torch
import numpy as np
from scipy.cluster.vq import kmeans2


TensorType = torch.DoubleTensor
torch_dtype = torch.double


def as_tensor(x):
    """
    Convert a numpy array (or a number, or a tensor) into a double Tensor.

    Args:
        x (np.ndarray, torch.Tensor, float or list)
    Returns:
        (torch.Tensor)
    """
    if isinstance(x, torch.Tensor):
        return x.detach().to(torch_dtype)
    if isinstance(x, np.ndarray):
        return torch.from_numpy(np.asarray(x, dtype=np.float64).copy())
    elif isinstance(x, (float, int)):
        return torch.tensor([float(x)], dtype=torch_dtype)
    elif isinstance(x, (list, tuple)):
        return torch.tensor(x, dtype=torch_dtype)
    else:
        raise TypeError("Unsupported type {}".format(type(x)))


def eye(n: int) -> torch.Tensor:
    return torch.eye(n, dtype=torch_dtype)


def kmeans_centers(x: np.ndarray, k: int, perturb_if_fail: bool = False) -> \
        np.ndarray:
    """
    Use k-means clustering and find the centers of the clusters.
    :param x: The data
    :param k: Number of clusters
    :param perturb_if_fail: Move the points randomly in case of a numpy
        LinAlgError.
    :return: the centers
    """
    x = np.asarray(x, dtype=np.float64)
    try:
        return kmeans2(x, k, minit="++")[0]
    except np.linalg.LinAlgError:
        if not perturb_if_fail:
            raise
        x_scale = x.std(axis=0)
        x_perturbed = x + 1.0e-4 * x_scale * np.random.randn(*x.shape)
        return kmeans2(x_perturbed, k, minit="++")[0]


def squared_distance(x1: torch.Tensor, x2: torch.Tensor = None) -> torch.Tensor:
    """
    Given points x1 [n1 x d1] and x2 [n2 x d2], return a [n1 x n2] matrix with
    the pairwise squared distances between the points.

    Entry (i, j) is sum_{j=1}^d (x_1[i, j] - x_2[i, j]) ^ 2
    """
    if x2 is None:
        return squared_distance(x1, x1)
    x1s = x1.pow(2).sum(1, keepdim=True)
    x2s = x2.pow(2).sum(1, keepdim=True)
    r2 = x1s + x2s.t() - 2.0 * x1 @ x2.t()
    # Clamping is for numerics; .detach() keeps the gradient flowing.
    return r2 - (torch.clamp(r2, max=0.0)).detach()
