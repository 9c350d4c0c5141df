"""L2 normalisation of embedding vectors."""

import numpy as np

EPSILON = 1e-12


def normalize(vector) -> np.ndarray:
    """
    Scale ``vector`` to unit L2 norm.

    Every element is divided by ``norm + EPSILON`` so an all-zero row comes
    back as zeros instead of NaN.  The norm is accumulated in float64 so
    rows with very small magnitudes do not underflow to zero.

    Returns:
        float32 array with the same shape as the input.
    """
    v = np.asarray(vector, dtype=np.float32)
    norm = np.sqrt(np.sum(np.square(v, dtype=np.float64)))
    return (v / (norm + EPSILON)).astype(np.float32)
