"""
Allele Frequency Data Structures

Holds per-marker, per-group allele frequencies and the ordered pool of
markers eligible for selection. Both are read-only once constructed;
every transformation returns a new matrix.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .errors import DataError


@dataclass(eq=False)
class AlleleFrequencyMatrix:
    """
    Markers x groups table of allele frequencies.

    Attributes:
        marker_ids: Unique marker identifiers, one per row
        group_labels: Unique group labels, one per column
        frequencies: Float array of shape (markers, groups); NaN marks a
            group with no called genotype at that marker
    """
    marker_ids: Tuple[str, ...]
    group_labels: Tuple[str, ...]
    frequencies: np.ndarray

    def __post_init__(self):
        self.marker_ids = tuple(str(m) for m in self.marker_ids)
        self.group_labels = tuple(str(g) for g in self.group_labels)

        freqs = np.array(self.frequencies, dtype=float, copy=True)
        if freqs.ndim != 2:
            raise DataError(f"Frequency table must be two-dimensional, got {freqs.ndim} dimension(s)")
        if freqs.shape != (len(self.marker_ids), len(self.group_labels)):
            raise DataError(
                f"Frequency table shape {freqs.shape} does not match "
                f"{len(self.marker_ids)} markers x {len(self.group_labels)} groups"
            )
        if len(set(self.marker_ids)) != len(self.marker_ids):
            raise DataError("Duplicate marker identifiers in frequency table")
        if len(set(self.group_labels)) != len(self.group_labels):
            raise DataError("Duplicate group labels in frequency table")

        defined = freqs[~np.isnan(freqs)]
        if defined.size and (defined.min() < 0.0 or defined.max() > 1.0):
            raise DataError("Allele frequencies must lie in [0, 1]")

        freqs.setflags(write=False)
        self.frequencies = freqs
        self._row_of: Dict[str, int] = {m: i for i, m in enumerate(self.marker_ids)}

    @property
    def n_markers(self) -> int:
        return len(self.marker_ids)

    @property
    def n_groups(self) -> int:
        return len(self.group_labels)

    def has_marker(self, marker_id: str) -> bool:
        return marker_id in self._row_of

    def marker_index(self, marker_id: str) -> int:
        """Row index of a marker; DataError if the matrix does not hold it"""
        try:
            return self._row_of[marker_id]
        except KeyError:
            raise DataError(f"Marker not present in frequency table: {marker_id}")

    def indices_for(self, marker_ids: Sequence[str]) -> np.ndarray:
        return np.array([self.marker_index(m) for m in marker_ids], dtype=int)

    def rows(self, indices: Sequence[int]) -> np.ndarray:
        """Frequencies restricted to the given row indices (a copy)"""
        return self.frequencies[np.asarray(indices, dtype=int)]

    def subset_markers(self, marker_ids: Sequence[str]) -> "AlleleFrequencyMatrix":
        """New matrix holding only the given markers, in the given order"""
        indices = self.indices_for(marker_ids)
        return AlleleFrequencyMatrix(
            marker_ids=tuple(marker_ids),
            group_labels=self.group_labels,
            frequencies=self.frequencies[indices]
        )

    def drop_groups(self, labels: Sequence[str]) -> "AlleleFrequencyMatrix":
        """New matrix without the given groups"""
        unknown = set(labels) - set(self.group_labels)
        if unknown:
            raise DataError(f"Unknown group label(s): {sorted(unknown)}")
        keep = [j for j, g in enumerate(self.group_labels) if g not in set(labels)]
        return AlleleFrequencyMatrix(
            marker_ids=self.marker_ids,
            group_labels=tuple(self.group_labels[j] for j in keep),
            frequencies=self.frequencies[:, keep]
        )

    def drop_incomplete_markers(self) -> "AlleleFrequencyMatrix":
        """New matrix without markers that are missing in any group"""
        complete = ~np.isnan(self.frequencies).any(axis=1)
        return AlleleFrequencyMatrix(
            marker_ids=tuple(m for m, ok in zip(self.marker_ids, complete) if ok),
            group_labels=self.group_labels,
            frequencies=self.frequencies[complete]
        )

    @classmethod
    def from_genotypes(cls,
                       genotypes: np.ndarray,
                       group_labels: Sequence[str],
                       marker_ids: Optional[Sequence[str]] = None) -> "AlleleFrequencyMatrix":
        """
        Derive per-group allele frequencies from a dosage matrix

        Args:
            genotypes: Array (markers x individuals) of 0/1/2 alternate
                allele counts; NaN for uncalled genotypes
            group_labels: Group label for each individual (column)
            marker_ids: Marker identifiers (defaults to SNP_0, SNP_1, ...)

        Returns:
            Matrix with one column per distinct group, sorted by label
        """
        geno = np.asarray(genotypes, dtype=float)
        if geno.ndim != 2:
            raise DataError("Genotype matrix must be two-dimensional")

        n_markers, n_individuals = geno.shape
        labels = [str(g) for g in group_labels]
        if len(labels) != n_individuals:
            raise DataError(
                f"Got {len(labels)} group labels for {n_individuals} individuals"
            )

        called = ~np.isnan(geno)
        if not np.isin(geno[called], (0.0, 1.0, 2.0)).all():
            raise DataError("Genotype dosages must be 0, 1, 2 or missing")

        if marker_ids is None:
            marker_ids = [f"SNP_{i}" for i in range(n_markers)]

        groups = sorted(set(labels))
        label_array = np.array(labels)
        freqs = np.full((n_markers, len(groups)), np.nan)

        for j, group in enumerate(groups):
            columns = label_array == group
            n_called = called[:, columns].sum(axis=1)
            allele_sum = np.nansum(geno[:, columns], axis=1)
            np.divide(allele_sum, 2.0 * n_called, out=freqs[:, j], where=n_called > 0)

        return cls(marker_ids=tuple(marker_ids), group_labels=tuple(groups), frequencies=freqs)


@dataclass(eq=False)
class MarkerPool:
    """
    Ordered set of markers eligible for selection.

    Attributes:
        marker_ids: Marker identifiers in pool order
        rows: Matrix row index for each pool position
    """
    marker_ids: Tuple[str, ...]
    rows: np.ndarray

    def __post_init__(self):
        self.marker_ids = tuple(self.marker_ids)
        rows = np.array(self.rows, dtype=int, copy=True)
        rows.setflags(write=False)
        self.rows = rows
        if len(self.marker_ids) != len(self.rows):
            raise DataError("Marker pool ids and row indices differ in length")

    @classmethod
    def from_matrix(cls,
                    matrix: AlleleFrequencyMatrix,
                    marker_ids: Optional[Sequence[str]] = None) -> "MarkerPool":
        """
        Build a pool over a frequency matrix

        Args:
            matrix: Source frequency matrix
            marker_ids: Eligible markers (defaults to every matrix row)
        """
        if marker_ids is None:
            marker_ids = matrix.marker_ids

        marker_ids = tuple(str(m) for m in marker_ids)
        if len(set(marker_ids)) != len(marker_ids):
            raise DataError("Duplicate marker identifiers in marker pool")

        return cls(marker_ids=marker_ids, rows=matrix.indices_for(marker_ids))

    def __len__(self) -> int:
        return len(self.marker_ids)

    def ids_at(self, positions: Sequence[int]) -> List[str]:
        return [self.marker_ids[p] for p in positions]
