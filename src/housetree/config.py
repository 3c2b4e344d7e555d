"""Pipeline configuration loaded from the environment, a `.env` file, or keyword arguments."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from housetree.dataset import DEFAULT_SPLIT_SEED


class PipelineSettings(BaseSettings):
    """Settings for one pipeline run.

    Every field can be set through an environment variable prefixed with
    `HOUSETREE_`, e.g. `HOUSETREE_TRAIN_RATIO=0.8`.

    Attributes:
        data_path (Path): Input CSV; header row, numeric records, label last.
        output_dir (Path): Directory receiving every artifact.
        drop_leading (int): Leading columns (e.g. an id) left out of the features.
        train_ratio (float): Fraction of rows used for training.
        split_seed (int | None): Seed for the train/test permutation.
        max_depth (int | None): Maximum tree depth; `None` for unlimited.
        min_samples_leaf (int): Minimum samples per leaf.
        random_state (int | None): Seed for sklearn's split tie-breaking.
        image_format (str): Image format for the tree and chart renders.
        dot_executable (str): Graphviz layout executable.
        render_timeout_seconds (float): Time limit for one `dot` invocation.
    """

    model_config = SettingsConfigDict(
        env_prefix="HOUSETREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_path: Path = Field(
        default=Path("data/House-Price-Prediction-clean.csv"),
        description="Input CSV with a header row and the price-bucket label in the last column.",
    )
    output_dir: Path = Field(default=Path("outputs"), description="Directory receiving every artifact.")
    drop_leading: int = Field(default=0, ge=0, description="Leading columns excluded from the features.")
    train_ratio: float = Field(default=0.9, gt=0.0, lt=1.0, description="Fraction of rows used for training.")
    split_seed: int | None = Field(default=DEFAULT_SPLIT_SEED, description="Seed for the train/test permutation.")
    max_depth: int | None = Field(default=None, ge=1, description="Maximum tree depth; None for unlimited.")
    min_samples_leaf: int = Field(default=1, ge=1, description="Minimum number of samples per leaf.")
    random_state: int | None = Field(default=0, description="Seed for sklearn's split tie-breaking.")
    image_format: str = Field(default="png", min_length=1, description="Image format for rendered artifacts.")
    dot_executable: str = Field(default="dot", min_length=1, description="Graphviz layout executable.")
    render_timeout_seconds: float = Field(default=60.0, gt=0.0, description="Time limit for one dot invocation.")

    def artifact_path(self, filename: str) -> Path:
        """Return the path of an artifact inside `output_dir`.

        Args:
            filename (str): Artifact file name.

        Returns:
            Path: `output_dir / filename`.
        """
        return self.output_dir / filename
