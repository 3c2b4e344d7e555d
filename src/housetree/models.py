"""Pydantic models describing the outcome of a pipeline run."""

from __future__ import annotations

import math
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator


class ArtifactStatus(BaseModel):
    """Outcome of producing one output file.

    Attributes:
        name (str): Short artifact name, e.g. `"predictions"` or `"tree_image"`.
        path (Path): Where the artifact was (or would have been) written.
        ok (bool): Whether the artifact was produced.
        error (str | None): Failure reason when `ok` is False.

    Examples:
        >>> ArtifactStatus(name="predictions", path=Path("outputs/predictions.csv"), ok=True)
        ArtifactStatus(name='predictions', path=PosixPath('outputs/predictions.csv'), ok=True, error=None)
    """

    name: str = Field(min_length=1, description="Short artifact name.")
    path: Path = Field(description="Where the artifact was (or would have been) written.")
    ok: bool = Field(description="Whether the artifact was produced.")
    error: str | None = Field(default=None, description="Failure reason when ok is False.")

    @model_validator(mode="after")
    def _validate_error_matches_ok(self) -> ArtifactStatus:
        """Validate that failed artifacts carry a reason and successful ones do not.

        Returns:
            ArtifactStatus: The validated model instance.

        Raises:
            ValueError: If `ok` and `error` disagree.
        """
        if self.ok and self.error is not None:
            raise ValueError("A successful artifact must not carry an error")
        if not self.ok and not self.error:
            raise ValueError("A failed artifact must carry an error message")
        return self

    def describe(self) -> str:
        """Return the console confirmation line for this artifact.

        Returns:
            str: `"<path> created successfully."` or `"<path> failed: <reason>"`.
        """
        if self.ok:
            return f"{self.path} created successfully."
        return f"{self.path} failed: {self.error}"


class PipelineReport(BaseModel):
    """Summary of a completed pipeline run, written to `report.json`.

    Attributes:
        data_path (Path): Input file.
        row_count (int): Rows in the input table.
        dataset_summary (str): Shape line and markdown preview of the dataset.
        feature_names (list[str]): Feature columns used for training.
        train_size (int): Rows in the train subset.
        test_size (int): Rows in the test subset.
        split_seed (int | None): Seed of the train/test permutation.
        accuracy (float): Accuracy on the test subset.
        train_accuracy (float): Accuracy on the train subset.
        confusion_matrix (list[list[int]]): Test confusion matrix; rows are
            actual classes, columns predicted classes.
        class_labels (list[int]): Class labels indexing `confusion_matrix`.
        feature_importance (dict[str, float]): Non-zero importances, highest first.
        tree_depth (int): Depth of the fitted tree.
        leaf_count (int): Number of leaves in the fitted tree.
        artifacts (list[ArtifactStatus]): Per-artifact outcomes in write order.
    """

    data_path: Path
    row_count: int = Field(ge=0)
    dataset_summary: str = ""
    feature_names: list[str]
    train_size: int = Field(ge=1)
    test_size: int = Field(ge=1)
    split_seed: int | None
    accuracy: float = Field(ge=0.0, le=1.0)
    train_accuracy: float = Field(ge=0.0, le=1.0)
    confusion_matrix: list[list[int]]
    class_labels: list[int]
    feature_importance: dict[str, float]
    tree_depth: int = Field(ge=0)
    leaf_count: int = Field(ge=1)
    artifacts: list[ArtifactStatus] = Field(default_factory=list)

    @field_validator("accuracy", "train_accuracy", mode="after")
    @classmethod
    def _validate_not_nan(cls, value: float) -> float:
        """Reject NaN accuracies.

        Args:
            value (float): The accuracy to validate.

        Returns:
            float: The validated value, unchanged.

        Raises:
            ValueError: If `value` is NaN.
        """
        if math.isnan(value):
            raise ValueError("accuracy must not be NaN")
        return value

    @model_validator(mode="after")
    def _validate_split_sizes(self) -> PipelineReport:
        """Validate that the split covers every input row.

        Returns:
            PipelineReport: The validated model instance.

        Raises:
            ValueError: If `train_size + test_size != row_count`.
        """
        if self.train_size + self.test_size != self.row_count:
            raise ValueError(
                f"train_size ({self.train_size}) + test_size ({self.test_size}) must equal row_count ({self.row_count})"
            )
        return self

    @property
    def failed_artifacts(self) -> list[ArtifactStatus]:
        """Artifacts that could not be produced."""
        return [artifact for artifact in self.artifacts if not artifact.ok]

    def artifact(self, name: str) -> ArtifactStatus:
        """Return the status of the artifact called `name`.

        Args:
            name (str): Artifact name.

        Returns:
            ArtifactStatus: The matching status.

        Raises:
            KeyError: If no artifact has that name.
        """
        for artifact in self.artifacts:
            if artifact.name == name:
                return artifact
        raise KeyError(name)
