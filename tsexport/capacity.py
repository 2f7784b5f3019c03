# tsexport/capacity.py
from __future__ import annotations

import numpy as np

from .exceptions import CapacityExceeded

# Container addressing limit per channel
SIZE_LIMIT = 2e9

SAMPLE_DTYPE = np.dtype(np.float64)


def check_capacity(total_length: int, dtype=SAMPLE_DTYPE, limit: float = SIZE_LIMIT) -> int:
    """Raise CapacityExceeded if ``total_length`` samples of ``dtype`` do not fit.

    Returns the required number of bytes.
    """
    required = int(total_length) * np.dtype(dtype).itemsize
    if required > limit:
        raise CapacityExceeded(required, limit)
    return required
