"""
I/O utilities for the restart extension.

Handles panel CSV reading, restart logging and output folder management.
"""

import csv
from pathlib import Path
from typing import Union

from .data_models import RestartRecord, RestartSummary


def load_panel_marker_ids(csv_path: Union[str, Path]) -> list[str]:
    """
    Read the marker identifiers of an exported panel CSV.

    CSV format (extra columns are ignored):
        marker_id,...
        SNP_0001,...

    Args:
        csv_path: Path to panel CSV file

    Returns:
        Marker identifiers in file order

    Raises:
        FileNotFoundError: If CSV file doesn't exist
        ValueError: If CSV format is invalid
    """
    csv_path = Path(csv_path)

    if not csv_path.exists():
        raise FileNotFoundError(f"Panel file not found: {csv_path}")

    with open(csv_path, 'r', newline='') as f:
        reader = csv.DictReader(f)

        if reader.fieldnames is None or 'marker_id' not in reader.fieldnames:
            raise ValueError(f"Invalid panel format in {csv_path}. Expected column: marker_id")

        marker_ids = [row['marker_id'].strip() for row in reader if row['marker_id'].strip()]

    if len(set(marker_ids)) != len(marker_ids):
        raise ValueError(f"Duplicate marker identifiers in panel file: {csv_path}")

    return marker_ids


def save_restart_log(
    records: list[RestartRecord],
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save restart records to CSV file.

    Args:
        records: List of RestartRecord objects
        output_path: Path for output CSV
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved restart log

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Restart log already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        fieldnames = ['index', 'seed', 'panel_path', 'marker_ids', 'objective',
                      'diversity', 'differentiation', 'iterations',
                      'acceptance_rate', 'stop_reason', 'elapsed_seconds']
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()

        for record in records:
            writer.writerow(record.to_dict())

    return output_path


def load_restart_log(log_path: Union[str, Path]) -> RestartSummary:
    """
    Load a restart log written by save_restart_log.

    Raises:
        FileNotFoundError: If log file doesn't exist
        ValueError: If the log holds no records
    """
    log_path = Path(log_path)

    if not log_path.exists():
        raise FileNotFoundError(f"Restart log not found: {log_path}")

    with open(log_path, 'r', newline='') as f:
        records = [RestartRecord.from_dict(row) for row in csv.DictReader(f)]

    return RestartSummary(records=records, metadata={'source_file': str(log_path)})


def prepare_output_folder(root: Union[str, Path], overwrite: bool = False) -> Path:
    """
    Create the output folder of a run.

    Raises:
        FileExistsError: If folder exists and overwrite=False
    """
    root = Path(root)

    if root.exists() and not overwrite:
        raise FileExistsError(
            f"Output directory already exists: {root}\n"
            f"Set 'output.overwrite: true' in config to overwrite"
        )

    root.mkdir(parents=True, exist_ok=overwrite)
    return root


def restart_panel_name(index: int, prefix: str = "restart", format_string: str = "{:03d}") -> str:
    """Standard base name (no extension) of a restart's panel files"""
    return f"{prefix}_{format_string.format(index)}"
