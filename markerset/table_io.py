"""
Table readers and writers for frequency and genotype data.

Formats (comma separated, header row required):
    frequency table:   marker_id,<group_1>,<group_2>,...
    genotype table:    marker_id,<individual_1>,<individual_2>,...   (0/1/2)
    group assignments: individual,group

Empty cells and NA-style tokens are read as missing.
"""

import csv
from pathlib import Path
from typing import Dict, List, Tuple, Union

import numpy as np

from .errors import DataError
from .frequency_matrix import AlleleFrequencyMatrix

MISSING_TOKENS = {"", "na", "nan", "n/a", ".", "-", "./.", "null"}


def _parse_value(token: str, path: Path, line: int) -> float:
    token = token.strip()
    if token.lower() in MISSING_TOKENS:
        return np.nan
    try:
        return float(token)
    except ValueError:
        raise DataError(f"Non-numeric value '{token}' in {path} line {line}")


def _read_numeric_table(path: Union[str, Path], id_column: str) -> Tuple[List[str], List[str], np.ndarray]:
    path = Path(path)
    if not path.exists():
        raise DataError(f"Table not found: {path}")

    with open(path, 'r', newline='') as f:
        reader = csv.reader(f)
        try:
            header = next(reader)
        except StopIteration:
            raise DataError(f"Table is empty: {path}")

        header = [h.strip() for h in header]
        if not header or header[0] != id_column:
            raise DataError(f"Invalid table format in {path}. First column must be '{id_column}'")

        columns = header[1:]
        row_ids = []
        values = []
        for line, row in enumerate(reader, start=2):
            if not row or all(not cell.strip() for cell in row):
                continue
            if len(row) != len(header):
                raise DataError(
                    f"{path} line {line}: expected {len(header)} fields, got {len(row)}"
                )
            row_ids.append(row[0].strip())
            values.append([_parse_value(cell, path, line) for cell in row[1:]])

    data = np.array(values, dtype=float).reshape(len(row_ids), len(columns))
    return row_ids, columns, data


def load_frequency_table(path: Union[str, Path]) -> AlleleFrequencyMatrix:
    """
    Load a markers x groups allele frequency table

    Raises:
        DataError: If the file is missing or malformed
    """
    marker_ids, groups, freqs = _read_numeric_table(path, 'marker_id')
    return AlleleFrequencyMatrix(
        marker_ids=tuple(marker_ids),
        group_labels=tuple(groups),
        frequencies=freqs
    )


def save_frequency_table(matrix: AlleleFrequencyMatrix, output_path: Union[str, Path]) -> Path:
    """Write a frequency table; missing entries are written as NA"""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['marker_id'] + list(matrix.group_labels))
        for marker_id, row in zip(matrix.marker_ids, matrix.frequencies):
            writer.writerow([marker_id] + ['NA' if np.isnan(v) else repr(float(v)) for v in row])

    return output_path


def load_genotype_table(path: Union[str, Path]) -> Tuple[List[str], List[str], np.ndarray]:
    """
    Load a markers x individuals dosage table

    Returns:
        (marker_ids, individual_ids, genotypes) with NaN for missing calls
    """
    return _read_numeric_table(path, 'marker_id')


def load_group_assignments(path: Union[str, Path]) -> Dict[str, str]:
    """Load individual -> group labels"""
    path = Path(path)
    if not path.exists():
        raise DataError(f"Group assignment file not found: {path}")

    assignments = {}
    with open(path, 'r', newline='') as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None or not {'individual', 'group'} <= set(reader.fieldnames):
            raise DataError(f"Invalid group file format in {path}. Expected columns: individual,group")

        for row in reader:
            individual = row['individual'].strip()
            if individual in assignments:
                raise DataError(f"Individual assigned twice in {path}: {individual}")
            assignments[individual] = row['group'].strip()

    return assignments


def load_matrix_from_genotypes(genotype_path: Union[str, Path],
                               groups_path: Union[str, Path]) -> AlleleFrequencyMatrix:
    """
    Derive a frequency matrix from a genotype table and group assignments

    Individuals without a group assignment are left out.
    """
    marker_ids, individuals, genotypes = load_genotype_table(genotype_path)
    assignments = load_group_assignments(groups_path)

    keep = [i for i, ind in enumerate(individuals) if ind in assignments]
    if not keep:
        raise DataError("No genotyped individual has a group assignment")

    labels = [assignments[individuals[i]] for i in keep]
    return AlleleFrequencyMatrix.from_genotypes(genotypes[:, keep], labels, marker_ids)
