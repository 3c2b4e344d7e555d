"""Reading delimited numeric files into a rectangular table of floats."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import numpy as np
import polars as pl
from loguru import logger

from housetree.exceptions import DataFileError, FormatError, ShapeError

__all__ = ["RawTable", "load_table"]

DELIMITER: Final[str] = ","

# Quoted fields may contain the delimiter; they are removed before counting.
_QUOTED_FIELD_PATTERN: Final[str] = r'"[^"]*"'


@dataclass(frozen=True, eq=False)
class RawTable:
    """Column names plus a rectangular matrix of numeric fields.

    Attributes:
        headers (tuple[str, ...]): Column names in file order, length H.
        rows (np.ndarray): Float64 matrix with shape `(N, H)`; row order
            matches the source file.
        source (Path | None): File the table was read from, used in error
            messages downstream.
        line_numbers (np.ndarray | None): Int64 vector with shape `(N,)`;
            `line_numbers[i]` is the 1-based file line of row `i`. None for
            tables built in memory.
    """

    headers: tuple[str, ...]
    rows: np.ndarray
    source: Path | None = None
    line_numbers: np.ndarray | None = None

    def __post_init__(self) -> None:
        """Validate that `rows` is a 2-D matrix with one column per header.

        Raises:
            ShapeError: If `rows` is not 2-D, its width differs from the
                number of headers, or `line_numbers` does not have one entry
                per row.
        """
        if self.rows.ndim != 2:
            raise ShapeError(f"Table rows must be a 2-D matrix, got {self.rows.ndim} dimension(s) ({self.source})")
        if self.rows.shape[1] != len(self.headers):
            raise ShapeError(
                f"Table has {len(self.headers)} headers but rows have {self.rows.shape[1]} fields ({self.source})"
            )
        if self.line_numbers is not None and self.line_numbers.shape != (self.rows.shape[0],):
            raise ShapeError(
                f"Table has {self.rows.shape[0]} rows but {self.line_numbers.shape} line numbers ({self.source})"
            )

    @property
    def row_count(self) -> int:
        """Number of data rows (excluding the header)."""
        return int(self.rows.shape[0])

    @property
    def column_count(self) -> int:
        """Number of columns, H."""
        return len(self.headers)

    def line_of(self, row_index: int) -> int | None:
        """Return the 1-based file line of a row, or None when unknown."""
        if self.line_numbers is None:
            return None
        return int(self.line_numbers[row_index])


def load_table(path: Path | str, *, has_header: bool = True) -> RawTable:
    """Read a delimited file whose data rows are entirely numeric.

    The first non-blank line is taken as column names when `has_header` is
    True; otherwise names are synthesized as `column_1`, `column_2`, ....
    Blank lines are skipped. Every row must have as many fields as the first
    one, and every field must parse as a real number. Parsing is
    all-or-nothing: the first bad row or field aborts the load and nothing
    is returned.

    Args:
        path (Path | str): The file to read.
        has_header (bool): Whether the first line holds column names.

    Returns:
        RawTable: The parsed headers, float64 rows and their file lines.

    Raises:
        DataFileError: If the file cannot be opened.
        FormatError: If the file is empty, or any field is missing or not a number.
        ShapeError: If a row has more or fewer fields than the first row.

    Examples:
        >>> table = load_table("data/House-Price-Prediction-clean.csv")  # doctest: +SKIP
        >>> table.headers[-1]  # doctest: +SKIP
        'SalePriceBucket'
    """
    source = Path(path)
    records = _read_records(source)
    if records.height == 0:
        raise FormatError("File is empty", path=source)

    expected_fields = int(records["field_count"][0])
    _raise_on_ragged_record(records, expected_fields, source)

    data_records = records.slice(1) if has_header else records
    text_frame = _parse_text_frame(records, source, has_header=has_header)
    numeric_frame = text_frame.select([
        pl.col(name).str.strip_chars().cast(pl.Float64, strict=False) for name in text_frame.columns
    ])
    line_numbers = data_records["line_number"].cast(pl.Int64).to_numpy()
    _raise_on_unparsed_field(text_frame, numeric_frame, source, line_numbers=line_numbers)

    rows = np.ascontiguousarray(numeric_frame.to_numpy(), dtype=np.float64).reshape(
        numeric_frame.height, numeric_frame.width
    )
    logger.debug("Loaded {} rows x {} columns from {}", rows.shape[0], rows.shape[1], source)
    return RawTable(headers=tuple(text_frame.columns), rows=rows, source=source, line_numbers=line_numbers)


# Private helpers


def _read_records(source: Path) -> pl.DataFrame:
    """Read the non-blank lines of a file with their line numbers and field counts.

    Args:
        source (Path): The file to read.

    Returns:
        pl.DataFrame: Columns `line_number` (1-based), `line` and
            `field_count`, one row per non-blank line in file order.

    Raises:
        DataFileError: If the file cannot be opened.
        FormatError: If the file is not UTF-8 text.
    """
    try:
        text = source.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FormatError("File is not UTF-8 text", path=source) from exc
    except OSError as exc:
        raise DataFileError("Cannot open data file", path=source) from exc

    return (
        pl.DataFrame({"line": text.splitlines()}, schema={"line": pl.String})
        .with_row_index("line_number", offset=1)
        .filter(pl.col("line").str.strip_chars() != "")
        .with_columns(
            field_count=pl.col("line")
            .str.replace_all(_QUOTED_FIELD_PATTERN, "")
            .str.count_matches(DELIMITER, literal=True)
            + 1
        )
    )


def _raise_on_ragged_record(records: pl.DataFrame, expected_fields: int, source: Path) -> None:
    """Raise `ShapeError` for the first line whose field count differs from the first line's.

    Args:
        records (pl.DataFrame): Output of `_read_records`.
        expected_fields (int): Field count of the first non-blank line.
        source (Path): The file the lines came from.

    Raises:
        ShapeError: If any line has more or fewer fields.
    """
    ragged = records.filter(pl.col("field_count") != expected_fields)
    if ragged.height == 0:
        return
    first = ragged.row(0, named=True)
    raise ShapeError(
        f"Row at line {first['line_number']} has {first['field_count']} fields, expected {expected_fields}"
        f" ({source})"
    )


def _parse_text_frame(records: pl.DataFrame, source: Path, *, has_header: bool) -> pl.DataFrame:
    """Split the kept lines into fields, every field as text.

    Args:
        records (pl.DataFrame): Output of `_read_records`, already checked for
            uniform field counts.
        source (Path): The file the lines came from.
        has_header (bool): Whether the first line holds column names.

    Returns:
        pl.DataFrame: A frame whose columns are all of dtype String.

    Raises:
        FormatError: If polars cannot tokenize the text.
    """
    body = "\n".join(records["line"].to_list()) + "\n"
    try:
        return pl.read_csv(io.BytesIO(body.encode("utf-8")), has_header=has_header, infer_schema=False)
    except pl.exceptions.ComputeError as exc:
        raise FormatError(f"Malformed delimited text: {exc}", path=source) from exc


def _raise_on_unparsed_field(
    text_frame: pl.DataFrame,
    numeric_frame: pl.DataFrame,
    source: Path,
    *,
    line_numbers: np.ndarray,
) -> None:
    """Raise `FormatError` for the first field (in file order) that did not parse.

    A field fails when its numeric cast is null: either the text was not a
    number or the field was empty.

    Args:
        text_frame (pl.DataFrame): The raw text fields.
        numeric_frame (pl.DataFrame): The same fields cast to Float64 (non-strict).
        source (Path): The file the fields came from.
        line_numbers (np.ndarray): 1-based file line of each data row.

    Raises:
        FormatError: If any field failed to parse.
    """
    first_failure: tuple[int, int] | None = None
    for column_index, name in enumerate(numeric_frame.columns):
        failed_rows = numeric_frame.get_column(name).is_null().arg_true()
        if failed_rows.len() == 0:
            continue
        candidate = (int(failed_rows[0]), column_index)
        if first_failure is None or candidate < first_failure:
            first_failure = candidate

    if first_failure is None:
        return

    row_index, column_index = first_failure
    column_name = text_frame.columns[column_index]
    raw_value = text_frame.get_column(column_name)[row_index]
    problem = "Missing value" if raw_value is None or not raw_value.strip() else f"Non-numeric value {raw_value!r}"
    raise FormatError(problem, path=source, line=int(line_numbers[row_index]), column=column_name)
