"""Pytest configuration and fixtures."""

import itertools

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest


@pytest.fixture(autouse=True)
def close_figures():
    """Close figures opened by a test."""
    yield
    plt.close("all")


@pytest.fixture
def two_by_three_data():
    """2 subjects x 2 levels of A x 3 levels of B, two trials per cell."""
    rows = []
    for subject, a, b, trial in itertools.product(["s1", "s2"], ["a1", "a2"], ["b1", "b2", "b3"], [1, 2]):
        value = 10.0 * (a == "a2") + 2.0 * int(b[1]) + (1.0 if subject == "s2" else 0.0) + 0.5 * trial
        rows.append({"subject": subject, "A": a, "B": b, "trial": trial, "score": value})
    return pd.DataFrame(rows)


@pytest.fixture
def four_factor_data():
    """Fully crossed within-subjects design with four factors."""
    rng = np.random.default_rng(42)
    rows = []
    levels = itertools.product(
        [f"s{i}" for i in range(1, 6)], ["n0", "n1"], ["p0", "p1"], ["k0", "k1", "k2"], ["r0", "r1"]
    )
    for subject, n, p, k, r in levels:
        rows.append({"subject": subject, "N": n, "P": p, "K": k, "R": r, "y": 50 + rng.normal(0, 5)})
    return pd.DataFrame(rows)


@pytest.fixture
def descriptives():
    """Small table of descriptive statistics with meaningful row labels."""
    return pd.DataFrame(
        {"M": [12.3456, 7.5, 3.0], "SD": [1.2, 0.85, np.nan], "n": [20, 18, 22]},
        index=pd.Index(["Control", "Treatment A", "Treatment B"], name="Group"),
    )
