"""
Tests for the allele frequency matrix, marker pool and table I/O
"""

import unittest
import sys
import tempfile
import shutil
from pathlib import Path

import numpy as np

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from markerset.errors import DataError
from markerset.frequency_matrix import AlleleFrequencyMatrix, MarkerPool
from markerset.table_io import (
    load_frequency_table, save_frequency_table, load_group_assignments,
    load_matrix_from_genotypes
)


class TestAlleleFrequencyMatrix(unittest.TestCase):
    """Test matrix construction and validation"""

    def setUp(self):
        self.matrix = AlleleFrequencyMatrix(
            marker_ids=["rs1", "rs2", "rs3"],
            group_labels=["A", "B"],
            frequencies=[[0.1, 0.9], [0.5, np.nan], [0.3, 0.4]]
        )

    def test_dimensions(self):
        self.assertEqual(self.matrix.n_markers, 3)
        self.assertEqual(self.matrix.n_groups, 2)
        self.assertEqual(self.matrix.marker_ids, ("rs1", "rs2", "rs3"))
        self.assertEqual(self.matrix.group_labels, ("A", "B"))

    def test_read_only(self):
        with self.assertRaises(ValueError):
            self.matrix.frequencies[0, 0] = 0.7

    def test_input_is_copied(self):
        source = np.array([[0.2, 0.4]])
        matrix = AlleleFrequencyMatrix(["m"], ["A", "B"], source)
        source[0, 0] = 0.9
        self.assertEqual(matrix.frequencies[0, 0], 0.2)

    def test_shape_mismatch(self):
        with self.assertRaises(DataError):
            AlleleFrequencyMatrix(["m1", "m2"], ["A"], [[0.1, 0.2]])

    def test_not_two_dimensional(self):
        with self.assertRaises(DataError):
            AlleleFrequencyMatrix(["m1"], ["A"], [0.1])

    def test_duplicate_markers(self):
        with self.assertRaises(DataError):
            AlleleFrequencyMatrix(["m1", "m1"], ["A"], [[0.1], [0.2]])

    def test_duplicate_groups(self):
        with self.assertRaises(DataError):
            AlleleFrequencyMatrix(["m1"], ["A", "A"], [[0.1, 0.2]])

    def test_out_of_range_frequency(self):
        with self.assertRaises(DataError):
            AlleleFrequencyMatrix(["m1"], ["A"], [[1.2]])
        with self.assertRaises(DataError):
            AlleleFrequencyMatrix(["m1"], ["A"], [[-0.1]])

    def test_marker_lookup(self):
        self.assertTrue(self.matrix.has_marker("rs2"))
        self.assertFalse(self.matrix.has_marker("rs9"))
        self.assertEqual(self.matrix.marker_index("rs3"), 2)
        with self.assertRaises(DataError):
            self.matrix.marker_index("rs9")

    def test_subset_markers(self):
        subset = self.matrix.subset_markers(["rs3", "rs1"])
        self.assertEqual(subset.marker_ids, ("rs3", "rs1"))
        np.testing.assert_allclose(subset.frequencies, [[0.3, 0.4], [0.1, 0.9]])
        # original untouched
        self.assertEqual(self.matrix.n_markers, 3)

    def test_drop_groups(self):
        reduced = self.matrix.drop_groups(["B"])
        self.assertEqual(reduced.group_labels, ("A",))
        np.testing.assert_allclose(reduced.frequencies[:, 0], [0.1, 0.5, 0.3])
        with self.assertRaises(DataError):
            self.matrix.drop_groups(["Z"])

    def test_drop_incomplete_markers(self):
        complete = self.matrix.drop_incomplete_markers()
        self.assertEqual(complete.marker_ids, ("rs1", "rs3"))
        self.assertEqual(self.matrix.n_markers, 3)

    def test_uncalled_marker_is_kept_until_dropped(self):
        matrix = AlleleFrequencyMatrix(
            marker_ids=["rs1", "rs2"],
            group_labels=["A", "B"],
            frequencies=[[0.2, 0.6], [np.nan, np.nan]]
        )
        self.assertTrue(np.isnan(matrix.frequencies[1]).all())
        self.assertEqual(matrix.drop_incomplete_markers().marker_ids, ("rs1",))


class TestFromGenotypes(unittest.TestCase):
    """Test frequency derivation from dosages"""

    def test_frequencies_per_group(self):
        genotypes = np.array([
            [0, 1, 2, 2],
            [0, 0, np.nan, 1],
        ], dtype=float)
        matrix = AlleleFrequencyMatrix.from_genotypes(
            genotypes, ["pop2", "pop2", "pop1", "pop1"], ["m1", "m2"]
        )

        # groups come back sorted by label
        self.assertEqual(matrix.group_labels, ("pop1", "pop2"))
        np.testing.assert_allclose(matrix.frequencies[0], [1.0, 0.25])
        # one called genotype in pop1 at m2: dosage 1 of 2 alleles
        np.testing.assert_allclose(matrix.frequencies[1], [0.5, 0.0])

    def test_uncalled_group_is_missing(self):
        genotypes = np.array([[np.nan, np.nan, 1]], dtype=float)
        matrix = AlleleFrequencyMatrix.from_genotypes(genotypes, ["a", "a", "b"])
        self.assertTrue(np.isnan(matrix.frequencies[0, 0]))
        self.assertEqual(matrix.frequencies[0, 1], 0.5)
        self.assertEqual(matrix.marker_ids, ("SNP_0",))

    def test_invalid_dosage(self):
        with self.assertRaises(DataError):
            AlleleFrequencyMatrix.from_genotypes(np.array([[0, 3]], dtype=float), ["a", "b"])

    def test_label_count_mismatch(self):
        with self.assertRaises(DataError):
            AlleleFrequencyMatrix.from_genotypes(np.zeros((2, 3)), ["a", "b"])


class TestMarkerPool(unittest.TestCase):
    """Test the ordered selection pool"""

    def setUp(self):
        self.matrix = AlleleFrequencyMatrix(
            ["m0", "m1", "m2", "m3"], ["A"], [[0.1], [0.2], [0.3], [0.4]]
        )

    def test_default_pool_covers_matrix(self):
        pool = MarkerPool.from_matrix(self.matrix)
        self.assertEqual(len(pool), 4)
        self.assertEqual(list(pool.rows), [0, 1, 2, 3])

    def test_explicit_pool(self):
        pool = MarkerPool.from_matrix(self.matrix, ["m3", "m1"])
        self.assertEqual(list(pool.rows), [3, 1])
        self.assertEqual(pool.ids_at([1, 0]), ["m1", "m3"])

    def test_unknown_marker(self):
        with self.assertRaises(DataError):
            MarkerPool.from_matrix(self.matrix, ["m1", "nope"])

    def test_duplicate_marker(self):
        with self.assertRaises(DataError):
            MarkerPool.from_matrix(self.matrix, ["m1", "m1"])


class TestTableIO(unittest.TestCase):
    """Test CSV readers and writers"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write(self, name, text):
        path = self.temp_dir / name
        path.write_text(text)
        return path

    def test_load_frequency_table(self):
        path = self.write("freqs.csv", "marker_id,A,B\nm1,0.1,0.9\nm2,NA,0.5\n\n")
        matrix = load_frequency_table(path)
        self.assertEqual(matrix.marker_ids, ("m1", "m2"))
        self.assertEqual(matrix.group_labels, ("A", "B"))
        self.assertTrue(np.isnan(matrix.frequencies[1, 0]))

    def test_frequency_table_written_and_read_back(self):
        matrix = AlleleFrequencyMatrix(["x", "y"], ["P", "Q"], [[0.25, np.nan], [1.0, 0.0]])
        path = save_frequency_table(matrix, self.temp_dir / "out" / "freqs.csv")
        loaded = load_frequency_table(path)
        self.assertEqual(loaded.marker_ids, matrix.marker_ids)
        np.testing.assert_array_equal(loaded.frequencies, matrix.frequencies)

    def test_missing_file(self):
        with self.assertRaises(DataError):
            load_frequency_table(self.temp_dir / "absent.csv")

    def test_bad_header(self):
        path = self.write("bad.csv", "snp,A\nm1,0.1\n")
        with self.assertRaises(DataError):
            load_frequency_table(path)

    def test_ragged_row(self):
        path = self.write("ragged.csv", "marker_id,A,B\nm1,0.1\n")
        with self.assertRaises(DataError):
            load_frequency_table(path)

    def test_non_numeric_value(self):
        path = self.write("text.csv", "marker_id,A\nm1,high\n")
        with self.assertRaises(DataError):
            load_frequency_table(path)

    def test_group_assignments(self):
        path = self.write("groups.csv", "individual,group\ni1,north\ni2,south\n")
        self.assertEqual(load_group_assignments(path), {"i1": "north", "i2": "south"})

        duplicate = self.write("dup.csv", "individual,group\ni1,north\ni1,south\n")
        with self.assertRaises(DataError):
            load_group_assignments(duplicate)

    def test_matrix_from_genotypes(self):
        genotypes = self.write(
            "geno.csv",
            "marker_id,i1,i2,i3,i4\nm1,0,2,1,NA\nm2,2,2,0,0\n"
        )
        # i4 has no group and is left out
        groups = self.write("groups.csv", "individual,group\ni1,a\ni2,a\ni3,b\n")
        matrix = load_matrix_from_genotypes(genotypes, groups)

        self.assertEqual(matrix.group_labels, ("a", "b"))
        np.testing.assert_allclose(matrix.frequencies, [[0.5, 0.5], [1.0, 0.0]])

    def test_matrix_from_genotypes_without_assignments(self):
        genotypes = self.write("geno.csv", "marker_id,i1\nm1,0\n")
        groups = self.write("groups.csv", "individual,group\nother,a\n")
        with self.assertRaises(DataError):
            load_matrix_from_genotypes(genotypes, groups)


if __name__ == '__main__':
    unittest.main()
