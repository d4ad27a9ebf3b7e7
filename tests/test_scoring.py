"""
Tests for diversity, differentiation and objective scoring
"""

import unittest
import sys
from pathlib import Path

import numpy as np

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from markerset.errors import ConfigurationError, DataError, NumericalError
from markerset.frequency_matrix import AlleleFrequencyMatrix
from markerset.scoring import (
    DifferentiationScorer, DiversityScorer, Evaluator, Score,
    expected_heterozygosity, geometric_mean, jost_d
)


def make_matrix(freqs, groups=None):
    freqs = np.array(freqs, dtype=float)
    if groups is None:
        groups = [f"G{j}" for j in range(freqs.shape[1])]
    markers = [f"M{i}" for i in range(freqs.shape[0])]
    return AlleleFrequencyMatrix(marker_ids=markers, group_labels=groups, frequencies=freqs)


class TestStatistics(unittest.TestCase):
    """Test the per-marker statistics"""

    def test_expected_heterozygosity(self):
        self.assertEqual(expected_heterozygosity(0.5), 0.5)
        self.assertEqual(expected_heterozygosity(0.0), 0.0)
        self.assertEqual(expected_heterozygosity(1.0), 0.0)
        self.assertAlmostEqual(expected_heterozygosity(0.1), 0.18)

    def test_jost_d_identical_frequencies(self):
        """Equal frequencies are not differentiated at all"""
        for p in (0.0, 0.3, 0.5, 1.0):
            self.assertEqual(float(jost_d(p, p)), 0.0)

    def test_jost_d_fixed_alternate_alleles(self):
        """Groups fixed for different alleles are fully differentiated"""
        self.assertEqual(float(jost_d(0.0, 1.0)), 1.0)
        self.assertEqual(float(jost_d(1.0, 0.0)), 1.0)

    def test_jost_d_intermediate(self):
        # Hs = (0.32 + 0.48) / 2 = 0.4, D = 0.16 / 0.6
        self.assertAlmostEqual(float(jost_d(0.2, 0.6)), 0.16 / 0.6)
        self.assertAlmostEqual(float(jost_d(0.2, 0.6)), float(jost_d(0.6, 0.2)))

    def test_jost_d_bounds(self):
        grid = np.linspace(0.0, 1.0, 21)
        p1, p2 = np.meshgrid(grid, grid)
        d = jost_d(p1, p2)
        self.assertTrue((d >= 0.0).all())
        self.assertTrue((d <= 1.0 + 1e-12).all())

    def test_jost_d_missing(self):
        self.assertTrue(np.isnan(jost_d(np.nan, 0.4)))


class TestGeometricMean(unittest.TestCase):
    """Test the aggregation used by both scores"""

    def test_basic(self):
        self.assertAlmostEqual(geometric_mean([4.0, 1.0]), 2.0)
        self.assertAlmostEqual(geometric_mean([0.2, 0.2, 0.2]), 0.2)

    def test_single_value_returned_exactly(self):
        self.assertEqual(geometric_mean([0.5]), 0.5)
        self.assertEqual(geometric_mean([0.123456789]), 0.123456789)

    def test_zero_collapses_mean(self):
        self.assertEqual(geometric_mean([0.4, 0.0, 0.3]), 0.0)

    def test_order_independent(self):
        values = [0.11, 0.37, 0.29, 0.05, 0.48]
        expected = geometric_mean(values)
        for shift in range(1, len(values)):
            self.assertEqual(geometric_mean(values[shift:] + values[:shift]), expected)

    def test_rounding_noise_below_zero_is_tolerated(self):
        self.assertEqual(geometric_mean([-1e-15, 0.3]), 0.0)

    def test_empty_raises(self):
        with self.assertRaises(DataError):
            geometric_mean([])

    def test_negative_raises(self):
        with self.assertRaises(NumericalError):
            geometric_mean([0.3, -0.01])

    def test_missing_raises(self):
        with self.assertRaises(NumericalError):
            geometric_mean([0.3, np.nan])


class TestDiversityScorer(unittest.TestCase):
    """Test within-group diversity"""

    def test_single_group_maximum(self):
        matrix = make_matrix([[0.5]])
        self.assertEqual(DiversityScorer(matrix).score([0]), 0.5)

    def test_group_means_skip_missing(self):
        matrix = make_matrix([
            [0.5, np.nan],
            [0.0, 0.5],
        ])
        means = DiversityScorer(matrix).group_means([0, 1])
        self.assertAlmostEqual(means[0], 0.25)
        # group 1 only has marker 1 called
        self.assertAlmostEqual(means[1], 0.5)

    def test_geometric_mean_across_groups(self):
        matrix = make_matrix([[0.5, 0.1]])
        # He = 0.5 and 0.18
        self.assertAlmostEqual(DiversityScorer(matrix).score([0]), np.sqrt(0.5 * 0.18))

    def test_group_order_does_not_matter(self):
        freqs = np.array([
            [0.10, 0.85, 0.45, 0.30],
            [0.50, 0.48, np.nan, 0.20],
            [0.92, 0.15, 0.40, 0.66],
        ])
        reference = DiversityScorer(make_matrix(freqs, ["a", "b", "c", "d"])).score([0, 1, 2])
        for order in ([3, 2, 1, 0], [1, 3, 0, 2], [2, 0, 3, 1]):
            labels = [["a", "b", "c", "d"][j] for j in order]
            permuted = make_matrix(freqs[:, order], labels)
            self.assertEqual(DiversityScorer(permuted).score([0, 1, 2]), reference)

    def test_monomorphic_group_zeroes_score(self):
        matrix = make_matrix([[0.5, 0.0], [0.4, 1.0]])
        self.assertEqual(DiversityScorer(matrix).score([0, 1]), 0.0)

    def test_group_without_usable_marker(self):
        matrix = make_matrix([[0.5, np.nan], [0.3, np.nan]])
        with self.assertRaises(DataError) as context:
            DiversityScorer(matrix).score([0, 1])
        self.assertIn("G1", str(context.exception))


class TestDifferentiationScorer(unittest.TestCase):
    """Test between-group differentiation"""

    def test_single_group_is_zero(self):
        matrix = make_matrix([[0.2], [0.7]])
        scorer = DifferentiationScorer(matrix)
        self.assertEqual(scorer.pairs, [])
        self.assertEqual(scorer.score([0, 1]), 0.0)

    def test_identical_groups_are_zero(self):
        matrix = make_matrix([[0.3, 0.3, 0.3], [0.6, 0.6, 0.6]])
        self.assertEqual(DifferentiationScorer(matrix).score([0, 1]), 0.0)

    def test_fixed_differences_are_one(self):
        matrix = make_matrix([[0.0, 1.0], [1.0, 0.0]])
        self.assertAlmostEqual(DifferentiationScorer(matrix).score([0, 1]), 1.0)

    def test_marker_values_average_pairs(self):
        matrix = make_matrix([[0.0, 1.0, 0.0]])
        # pairs (0,1)=1, (0,2)=0, (1,2)=1
        values = DifferentiationScorer(matrix).marker_values([0])
        self.assertAlmostEqual(values[0], 2.0 / 3.0)

    def test_incomparable_marker_is_skipped(self):
        matrix = make_matrix([
            [0.0, 1.0, np.nan],
            [np.nan, np.nan, 0.5],
        ])
        scorer = DifferentiationScorer(matrix)
        values = scorer.marker_values([0, 1])
        self.assertAlmostEqual(values[0], 1.0)
        self.assertTrue(np.isnan(values[1]))
        self.assertAlmostEqual(scorer.score([0, 1]), 1.0)

    def test_no_comparable_marker_raises(self):
        matrix = make_matrix([[0.2, np.nan], [np.nan, 0.4]])
        with self.assertRaises(DataError):
            DifferentiationScorer(matrix).score([0, 1])

    def test_pair_means_symmetric(self):
        matrix = make_matrix([[0.1, 0.5, 0.9], [0.2, 0.2, 0.8]])
        means = DifferentiationScorer(matrix).pair_means([0, 1])
        self.assertTrue(np.allclose(means, means.T))
        self.assertTrue(np.allclose(np.diag(means), 0.0))
        self.assertAlmostEqual(means[0, 2], (float(jost_d(0.1, 0.9)) + float(jost_d(0.2, 0.8))) / 2)


class TestEvaluator(unittest.TestCase):
    """Test the weighted objective"""

    def setUp(self):
        self.matrix = make_matrix([
            [0.10, 0.85, 0.45],
            [0.50, 0.48, 0.52],
            [0.92, 0.15, 0.40],
            [0.30, 0.35, np.nan],
            [0.05, 0.60, 0.95],
        ])

    def test_weight_validation(self):
        with self.assertRaises(ConfigurationError):
            Evaluator(self.matrix, diversity_weight=1.5)
        with self.assertRaises(ConfigurationError):
            Evaluator(self.matrix, diversity_weight=-0.1)

    def test_objective_normalization(self):
        score = Score(diversity=0.25, differentiation=0.4)
        self.assertAlmostEqual(Evaluator(self.matrix, 0.5).objective(score), 0.5 * 0.5 + 0.5 * 0.4)
        self.assertAlmostEqual(Evaluator(self.matrix, 1.0).objective(score), 0.5)
        self.assertAlmostEqual(Evaluator(self.matrix, 0.0).objective(score), 0.4)

    def test_objective_range(self):
        evaluator = Evaluator(self.matrix)
        objective, score = evaluator.evaluate([0, 2, 4])
        self.assertGreaterEqual(score.diversity, 0.0)
        self.assertLessEqual(score.diversity, 0.5)
        self.assertGreaterEqual(score.differentiation, 0.0)
        self.assertLessEqual(score.differentiation, 1.0)
        self.assertGreaterEqual(objective, 0.0)
        self.assertLessEqual(objective, 1.0)

    def test_member_order_does_not_matter(self):
        evaluator = Evaluator(self.matrix)
        reference = evaluator.evaluate([0, 1, 3, 4])
        self.assertEqual(evaluator.evaluate([4, 3, 1, 0]), reference)
        self.assertEqual(evaluator.evaluate([3, 0, 4, 1]), reference)

    def test_score_as_tuple(self):
        score = Evaluator(self.matrix).score([1, 2])
        self.assertEqual(score.as_tuple(), (score.diversity, score.differentiation))


if __name__ == '__main__':
    unittest.main()
