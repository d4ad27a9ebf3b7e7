"""
Data models for the restart extension.

Records describing independent annealing restarts and their summary.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


@dataclass
class RestartRecord:
    """
    Outcome of one annealing restart.

    Attributes:
        index: Restart number within the batch
        seed: Random seed the restart ran with
        panel_path: Path to the exported panel CSV
        marker_ids: Selected markers in pool order
        objective: Combined objective of the best panel
        diversity: Geometric mean expected heterozygosity
        differentiation: Geometric mean Jost's D
        iterations: Number of proposals made
        acceptance_rate: Share of proposals accepted
        stop_reason: Why the restart terminated
        elapsed_seconds: Wall-clock time of the restart
    """
    index: int
    seed: int
    panel_path: Path
    marker_ids: list[str]
    objective: float
    diversity: float
    differentiation: float
    iterations: int
    acceptance_rate: float
    stop_reason: str
    elapsed_seconds: float = 0.0

    def __post_init__(self):
        """Ensure path is a Path object."""
        if not isinstance(self.panel_path, Path):
            self.panel_path = Path(self.panel_path)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert record to dictionary for CSV export.

        Returns:
            Dictionary with string-serializable values
        """
        return {
            "index": self.index,
            "seed": self.seed,
            "panel_path": str(self.panel_path),
            "marker_ids": ";".join(self.marker_ids),
            "objective": repr(self.objective),
            "diversity": repr(self.diversity),
            "differentiation": repr(self.differentiation),
            "iterations": self.iterations,
            "acceptance_rate": repr(self.acceptance_rate),
            "stop_reason": self.stop_reason,
            "elapsed_seconds": f"{self.elapsed_seconds:.4f}",
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RestartRecord":
        """
        Create record from dictionary (e.g., from CSV).

        Args:
            data: Dictionary with restart information

        Returns:
            RestartRecord instance
        """
        return cls(
            index=int(data["index"]),
            seed=int(data["seed"]),
            panel_path=Path(data["panel_path"]),
            marker_ids=data["marker_ids"].split(";") if data["marker_ids"] else [],
            objective=float(data["objective"]),
            diversity=float(data["diversity"]),
            differentiation=float(data["differentiation"]),
            iterations=int(data["iterations"]),
            acceptance_rate=float(data["acceptance_rate"]),
            stop_reason=data["stop_reason"],
            elapsed_seconds=float(data.get("elapsed_seconds") or 0.0),
        )


@dataclass
class RestartSummary:
    """
    All restarts of one batch.

    Attributes:
        records: One record per restart
        metadata: Additional information (base seed, worker count, etc.)
    """
    records: list[RestartRecord]
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate summary."""
        if not self.records:
            raise ValueError("RestartSummary must contain at least one restart")

    def best(self) -> RestartRecord:
        """
        Record with the highest objective; ties go to the lowest index.

        Returns:
            Best RestartRecord
        """
        return min(self.records, key=lambda r: (-r.objective, r.index))

    def get_record(self, index: int) -> Optional[RestartRecord]:
        for record in self.records:
            if record.index == index:
                return record
        return None

    def objective_range(self) -> tuple[float, float]:
        objectives = [r.objective for r in self.records]
        return min(objectives), max(objectives)

    def distinct_panels(self) -> int:
        """Number of different panels found across restarts"""
        return len({tuple(r.marker_ids) for r in self.records})

    def __len__(self) -> int:
        return len(self.records)
