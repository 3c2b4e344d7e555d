"""Custom exceptions for the housetree pipeline.

All exceptions derive from `PipelineError`, so callers can catch every
pipeline failure with a single handler. Each concrete exception also
subclasses the closest builtin so that generic handlers keep working:

- DataFileError (OSError): A data or artifact file cannot be opened, created,
  or written.
- FormatError (ValueError): A field that must be numeric is not, or a target
  value cannot be used as a class label.
- ShapeError (ValueError): Rows of unequal length, or two sequences that must
  pair up positionally have different lengths.
- InvalidRatioError (ValueError): A train/test split ratio is outside (0, 1)
  or would leave one side of the split empty.
- InvariantViolationError (RuntimeError): A trained tree references a feature
  index that does not exist in the feature names it is rendered with.
- RenderError (RuntimeError): An external renderer failed or timed out.
"""

from __future__ import annotations

from pathlib import Path


class PipelineError(Exception):
    """Base exception for all housetree pipeline failures."""


class DataFileError(PipelineError, OSError):
    """Raised when a file cannot be opened, created, or written.

    Attributes:
        path (Path): The file that could not be accessed.

    Examples:
        >>> err = DataFileError("cannot open file", path=Path("missing.csv"))
        >>> err.path
        PosixPath('missing.csv')
    """

    path: Path

    def __init__(self, message: str, *, path: Path | str) -> None:
        """Initialize DataFileError.

        Args:
            message (str): Description of the failure.
            path (Path | str): The file that could not be accessed.
        """
        super().__init__(f"{message}: {path}")
        self.path = Path(path)


class FormatError(PipelineError, ValueError):
    """Raised when a field cannot be interpreted as the expected number.

    Attributes:
        path (Path | None): Source file of the offending field, when known.
        line (int | None): 1-based line number in the source file, when known.
        column (str | None): Column name of the offending field, when known.
    """

    path: Path | None
    line: int | None
    column: str | None

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        line: int | None = None,
        column: str | None = None,
    ) -> None:
        """Initialize FormatError.

        Args:
            message (str): Description of the format problem.
            path (Path | str | None): Source file of the offending field.
            line (int | None): 1-based line number in the source file.
            column (str | None): Column name of the offending field.
        """
        self.path = Path(path) if path is not None else None
        self.line = line
        self.column = column
        location = [
            part
            for part in (
                str(self.path) if self.path is not None else None,
                f"line {line}" if line is not None else None,
                f"column {column!r}" if column is not None else None,
            )
            if part is not None
        ]
        super().__init__(f"{message} ({', '.join(location)})" if location else message)


class ShapeError(PipelineError, ValueError):
    """Raised when tabular data is not rectangular or paired sequences differ in length."""


class InvalidRatioError(PipelineError, ValueError):
    """Raised when a split ratio is out of range or produces an empty partition.

    Attributes:
        ratio (float): The rejected ratio.
    """

    ratio: float

    def __init__(self, message: str, *, ratio: float) -> None:
        """Initialize InvalidRatioError.

        Args:
            message (str): Description of why the ratio was rejected.
            ratio (float): The rejected ratio.
        """
        super().__init__(message)
        self.ratio = ratio


class InvariantViolationError(PipelineError, RuntimeError):
    """Raised when a trained tree and its feature names are out of sync.

    Attributes:
        node_id (int): Pre-order id of the node with the unresolvable feature.
        feature_index (int): The feature index that could not be resolved.
    """

    node_id: int
    feature_index: int

    def __init__(self, message: str, *, node_id: int, feature_index: int) -> None:
        """Initialize InvariantViolationError.

        Args:
            message (str): Description of the violated invariant.
            node_id (int): Pre-order id of the offending node.
            feature_index (int): The unresolvable feature index.
        """
        super().__init__(message)
        self.node_id = node_id
        self.feature_index = feature_index


class RenderError(PipelineError, RuntimeError):
    """Raised when an external renderer fails or times out.

    Attributes:
        path (Path): The image the renderer was asked to produce.
    """

    path: Path

    def __init__(self, message: str, *, path: Path | str) -> None:
        """Initialize RenderError.

        Args:
            message (str): Description of the render failure.
            path (Path | str): The image the renderer was asked to produce.
        """
        super().__init__(message)
        self.path = Path(path)

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Representation including message and target path.
        """
        return f"{self.__class__.__name__}(message={str(self)!r}, path={str(self.path)!r})"
