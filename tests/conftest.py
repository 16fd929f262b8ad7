import numpy as np
import pandas as pd
import pytest

from discrete_data import DiscreteData
from parent_set import BayesNetwork


@pytest.fixture
def dependent_frame() -> pd.DataFrame:
    """A drives B (5% noise), C is independent noise, Class follows A."""
    rng = np.random.default_rng(7)
    n = 400
    a = rng.integers(0, 2, n)
    b = np.where(rng.random(n) < 0.05, 1 - a, a)
    c = rng.integers(0, 3, n)
    cls = np.where(rng.random(n) < 0.1, 1 - a, a)
    return pd.DataFrame({"A": a, "B": b, "C": c, "Class": cls})


@pytest.fixture
def random_data() -> DiscreteData:
    rng = np.random.default_rng(11)
    n = 60
    frame = pd.DataFrame({
        "X0": rng.integers(0, 2, n),
        "X1": rng.choice(3, size=n, p=[0.6, 0.3, 0.1]),
        "X2": rng.integers(0, 2, n),
        "X3": rng.integers(0, 3, n),
    })
    weights = rng.uniform(0.5, 2.0, n)
    return DiscreteData.from_frame(frame, "X3", weights=weights)


@pytest.fixture
def abc_network() -> BayesNetwork:
    return BayesNetwork(["A", "B", "Class"], [2, 2, 2])
