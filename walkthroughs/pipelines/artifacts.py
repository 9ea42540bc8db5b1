"""Filesystem store for run outputs.

Organizes artifacts in a directory structure:
    root/
        tables/<name>/table.parquet
        tables/<name>/metadata.json
        figures/<name>.png
        models/<name>.joblib
"""

from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any

import joblib
import polars as pl
from matplotlib.figure import Figure

from walkthroughs.plots.common import save_figure


logger = logging.getLogger(__name__)


@dataclass
class ArtifactStore:
    """Parquet tables, PNG figures and pickled estimators under one root."""

    root: Path

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        self.root.mkdir(parents=True, exist_ok=True)

    @property
    def tables_dir(self) -> Path:
        return self.root / "tables"

    @property
    def figures_dir(self) -> Path:
        return self.root / "figures"

    @property
    def models_dir(self) -> Path:
        return self.root / "models"

    def save_table(
        self,
        df: pl.DataFrame,
        name: str,
        metadata: dict[str, Any] | None = None,
    ) -> Path:
        """Save a table as parquet with a JSON sidecar.

        Args:
            df: Table to persist
            name: Identifier for the table
            metadata: Extra JSON-serializable fields for the sidecar

        Returns:
            Path to the saved parquet file
        """
        table_dir = self.tables_dir / name
        table_dir.mkdir(parents=True, exist_ok=True)

        parquet_path = table_dir / "table.parquet"
        df.write_parquet(parquet_path)

        with open(table_dir / "metadata.json", "w") as f:
            json.dump({
                "columns": df.columns,
                "n_rows": df.height,
                "n_columns": df.width,
                **(metadata or {}),
            }, f, indent=2, default=str)

        logger.debug("Saved table %s (%d rows) to %s", name, df.height, parquet_path)
        return parquet_path

    def load_table(self, name: str) -> pl.DataFrame:
        """Load a table saved by :meth:`save_table`.

        Raises:
            FileNotFoundError: If the table doesn't exist
        """
        parquet_path = self.tables_dir / name / "table.parquet"
        if not parquet_path.exists():
            raise FileNotFoundError(f"Table '{name}' not found at {parquet_path}")
        return pl.read_parquet(parquet_path)

    def load_metadata(self, name: str) -> dict[str, Any]:
        metadata_path = self.tables_dir / name / "metadata.json"
        if not metadata_path.exists():
            raise FileNotFoundError(f"Metadata for table '{name}' not found at {metadata_path}")
        with open(metadata_path) as f:
            return json.load(f)

    def list_tables(self) -> list[str]:
        if not self.tables_dir.exists():
            return []
        return sorted(
            d.name for d in self.tables_dir.iterdir()
            if d.is_dir() and (d / "table.parquet").exists()
        )

    def table_exists(self, name: str) -> bool:
        return (self.tables_dir / name / "table.parquet").exists()

    def save_figure(self, fig: Figure, name: str) -> Path:
        """Write a figure as ``figures/<name>.png`` and close it."""
        return save_figure(fig, self.figures_dir / f"{name}.png")

    def save_estimator(self, estimator: Any, name: str) -> Path:
        """Pickle a fitted estimator with joblib."""
        self.models_dir.mkdir(parents=True, exist_ok=True)
        path = self.models_dir / f"{name}.joblib"
        joblib.dump(estimator, path)
        return path

    def load_estimator(self, name: str) -> Any:
        path = self.models_dir / f"{name}.joblib"
        if not path.exists():
            raise FileNotFoundError(f"Estimator '{name}' not found at {path}")
        return joblib.load(path)
