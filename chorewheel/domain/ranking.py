"""
Chore ranking from pairwise preferences (power method).

Each resident may state, for any pair of chores, a preference in [0, 1]:
1.0 means all value should flow to alpha, 0.0 all value to beta. Missing
preferences count as neutral (0.5) for every active resident.

The preferences become a weighted directed graph over chores:

    M[b][a] = 0.5 * R + sum(pref_r(a over b) - 0.5)

where R is the number of active residents. The diagonal holds the column
sums (each chore keeps the flow it attracts), rows are normalised into a
transition matrix, and the stationary distribution of that random walk is
the ranking. Cycles converge toward uniform influence instead of breaking.
"""
from dataclasses import dataclass
from typing import Hashable, Iterable, Sequence

import numpy as np

NEUTRAL_PREFERENCE = 0.5


@dataclass(frozen=True)
class Preference:
    alpha: Hashable
    beta: Hashable
    preference: float


class PowerRanker:
    """
    Usage:
        ranker = PowerRanker([1, 2, 3], [Preference(1, 2, 1.0)], num_residents=2)
        ranker.run(damping=0.99)  -> {1: 0.44..., 2: 0.22..., 3: 0.33...}
    """

    def __init__(self, items: Sequence[Hashable], preferences: Iterable[Preference], num_residents: int):
        self.items = list(items)
        self.index = {item: ix for ix, item in enumerate(self.items)}
        self.num_preferences = 0
        self.matrix = self._to_matrix(preferences, num_residents)

    def _to_matrix(self, preferences: Iterable[Preference], num_residents: int) -> np.ndarray:
        n = len(self.items)

        # Implicit neutral preferences on the off-diagonals
        matrix = np.full((n, n), NEUTRAL_PREFERENCE * num_residents, dtype=float)
        np.fill_diagonal(matrix, 0.0)

        # Replace the neutral preference with the stated one
        for p in preferences:
            if p.alpha not in self.index or p.beta not in self.index:
                continue
            alpha_ix = self.index[p.alpha]
            beta_ix = self.index[p.beta]
            matrix[beta_ix, alpha_ix] += p.preference - NEUTRAL_PREFERENCE
            matrix[alpha_ix, beta_ix] += (1.0 - p.preference) - NEUTRAL_PREFERENCE
            self.num_preferences += 1

        # Stale rows (more preferences than residents) must not produce negative flow
        np.clip(matrix, 0.0, None, out=matrix)

        np.fill_diagonal(matrix, matrix.sum(axis=0))
        return matrix

    def run(self, damping: float = 0.99, epsilon: float = 1e-10, max_iterations: int = 1000) -> dict:
        """
        Return {item: ranking}; rankings are non-negative and sum to 1.
        """
        n = len(self.items)
        if n == 0:
            return {}

        # No data, no persuasion
        if self.num_preferences == 0:
            return {item: 1.0 / n for item in self.items}

        weights = self._power_method(self.matrix, damping, epsilon, max_iterations)
        return {item: float(weight) for item, weight in zip(self.items, weights)}

    @staticmethod
    def _power_method(matrix: np.ndarray, damping: float, epsilon: float, max_iterations: int) -> np.ndarray:
        n = matrix.shape[0]

        transition = matrix.copy()
        row_sums = transition.sum(axis=1, keepdims=True)
        empty_rows = row_sums[:, 0] == 0
        transition[empty_rows] = 1.0
        row_sums[empty_rows] = n
        transition = transition / row_sums

        transition = damping * transition + (1.0 - damping) / n

        weights = np.full(n, 1.0 / n)
        for _ in range(max_iterations):
            updated = weights @ transition
            converged = np.abs(updated - weights).sum() < epsilon
            weights = updated
            if converged:
                break

        return weights / weights.sum()
