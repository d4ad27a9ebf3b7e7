"""
Panel Scoring

Within-group diversity (expected heterozygosity) and between-group
differentiation (Jost's D) of a candidate marker panel, and the weighted
objective the annealing search maximizes.

Both scores aggregate with a geometric mean so that a panel weak in a
single group (diversity) or on a single marker (differentiation) is pulled
toward zero.
"""

from dataclasses import dataclass
from itertools import combinations
from typing import List, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError, DataError, NumericalError
from .frequency_matrix import AlleleFrequencyMatrix

# Theoretical maxima used to put both terms on a [0, 1] scale
MAX_DIVERSITY = 0.5
MAX_DIFFERENTIATION = 1.0

# Rounding slack tolerated below zero before a geometric mean
NEGATIVE_TOLERANCE = 1e-12


def expected_heterozygosity(p):
    """Diploid Hardy-Weinberg expected heterozygosity 2p(1-p)"""
    return 2.0 * p * (1.0 - p)


def jost_d(p1, p2):
    """
    Jost's D between two groups at a biallelic locus

    With Hs the mean within-group He and Ht the He of the pooled
    frequency, D = (Ht - Hs) / (1 - Hs) * n / (n - 1) for n = 2 groups.
    For two alleles Ht - Hs reduces to (p1 - p2)^2 / 2, so

        D = (p1 - p2)^2 / (1 - Hs)

    which is 0 for equal frequencies and 1 for fixed alternate alleles.
    NaN inputs give NaN.
    """
    p1 = np.asarray(p1, dtype=float)
    p2 = np.asarray(p2, dtype=float)
    hs = (expected_heterozygosity(p1) + expected_heterozygosity(p2)) / 2.0
    return (p1 - p2) ** 2 / (1.0 - hs)


def geometric_mean(values: Sequence[float]) -> float:
    """
    Geometric mean of non-negative values

    Raises:
        DataError: If there are no values
        NumericalError: If any value is negative
    """
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        raise DataError("Geometric mean of an empty set of values is undefined")
    if np.isnan(values).any():
        raise NumericalError("Geometric mean received a missing value")
    if (values < -NEGATIVE_TOLERANCE).any():
        raise NumericalError(f"Geometric mean received a negative value: {values.min()}")

    # sorted so the result does not depend on input order
    values = np.sort(np.clip(values, 0.0, None))
    if values.size == 1:
        return float(values[0])
    if (values == 0.0).any():
        return 0.0
    return float(np.exp(np.mean(np.log(values))))


@dataclass(frozen=True)
class Score:
    """Raw (diversity, differentiation) pair of a marker panel"""
    diversity: float
    differentiation: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.diversity, self.differentiation)


class DiversityScorer:
    """Geometric mean across groups of the mean expected heterozygosity"""

    def __init__(self, matrix: AlleleFrequencyMatrix):
        if matrix.n_groups == 0:
            raise DataError("Frequency table has no groups")
        self.matrix = matrix

    def group_means(self, rows: Sequence[int]) -> np.ndarray:
        """
        Mean He per group over the selected markers, skipping missing entries

        Raises:
            DataError: If a group has no usable marker among the rows
        """
        he = expected_heterozygosity(self.matrix.rows(rows))
        usable = ~np.isnan(he)
        counts = usable.sum(axis=0)

        empty = [self.matrix.group_labels[j] for j in np.flatnonzero(counts == 0)]
        if empty:
            raise DataError(f"Group(s) with no usable markers in panel: {empty}")

        return np.where(usable, he, 0.0).sum(axis=0) / counts

    def score(self, rows: Sequence[int]) -> float:
        return geometric_mean(self.group_means(rows))


class DifferentiationScorer:
    """Geometric mean across markers of the mean pairwise Jost's D"""

    def __init__(self, matrix: AlleleFrequencyMatrix):
        if matrix.n_groups == 0:
            raise DataError("Frequency table has no groups")
        self.matrix = matrix
        self.pairs: List[Tuple[int, int]] = list(combinations(range(matrix.n_groups), 2))

    def pairwise_values(self, rows: Sequence[int]) -> np.ndarray:
        """D for each selected marker and group pair, shape (markers, pairs)"""
        freqs = self.matrix.rows(rows)
        if not self.pairs:
            return np.empty((len(freqs), 0))
        return np.column_stack([jost_d(freqs[:, a], freqs[:, b]) for a, b in self.pairs])

    def marker_values(self, rows: Sequence[int]) -> np.ndarray:
        """
        Mean D over comparable group pairs for each selected marker

        Markers with no pair of groups both called come back as NaN.
        """
        d = self.pairwise_values(rows)
        usable = ~np.isnan(d)
        counts = usable.sum(axis=1)
        totals = np.where(usable, d, 0.0).sum(axis=1)
        values = np.full(len(d), np.nan)
        np.divide(totals, counts, out=values, where=counts > 0)
        return values

    def pair_means(self, rows: Sequence[int]) -> np.ndarray:
        """Symmetric groups x groups matrix of mean D over the selected markers"""
        d = self.pairwise_values(rows)
        k = self.matrix.n_groups
        result = np.zeros((k, k))
        for col, (a, b) in enumerate(self.pairs):
            column = d[:, col]
            column = column[~np.isnan(column)]
            value = float(column.mean()) if column.size else np.nan
            result[a, b] = result[b, a] = value
        return result

    def score(self, rows: Sequence[int]) -> float:
        """
        Raises:
            DataError: If no selected marker is called in two groups
        """
        if not self.pairs:
            # a single group has nothing to be differentiated from
            return 0.0

        values = self.marker_values(rows)
        values = values[~np.isnan(values)]
        if values.size == 0:
            raise DataError("No marker in panel is called in at least two groups")
        return geometric_mean(values)


class Evaluator:
    """
    Weighted search objective

        objective = w * diversity / 0.5 + (1 - w) * differentiation / 1.0
    """

    def __init__(self, matrix: AlleleFrequencyMatrix, diversity_weight: float = 0.5):
        if not 0.0 <= diversity_weight <= 1.0:
            raise ConfigurationError(
                f"Diversity weight must lie in [0, 1], got {diversity_weight}"
            )
        self.matrix = matrix
        self.diversity_weight = float(diversity_weight)
        self.diversity_scorer = DiversityScorer(matrix)
        self.differentiation_scorer = DifferentiationScorer(matrix)

    def score(self, rows: Sequence[int]) -> Score:
        # canonical row order keeps floating-point sums identical for any member order
        rows = np.sort(np.asarray(rows, dtype=int))
        return Score(
            diversity=self.diversity_scorer.score(rows),
            differentiation=self.differentiation_scorer.score(rows)
        )

    def objective(self, score: Score) -> float:
        w = self.diversity_weight
        return (w * score.diversity / MAX_DIVERSITY
                + (1.0 - w) * score.differentiation / MAX_DIFFERENTIATION)

    def evaluate(self, rows: Sequence[int]) -> Tuple[float, Score]:
        """Score a panel given its matrix rows; returns (objective, score)"""
        score = self.score(rows)
        return self.objective(score), score
