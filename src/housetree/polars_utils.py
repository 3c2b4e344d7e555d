"""Utility functions for viewing datasets as Polars DataFrames."""

from __future__ import annotations

import polars as pl

from housetree.dataset import Dataset


def dataset_to_frame(dataset: Dataset, *, target_name: str | None = None) -> pl.DataFrame:
    """Convert a dataset into a DataFrame with one column per feature plus the target.

    The label column is named after `dataset.target_name` unless `target_name`
    is given. A name already taken by a feature gets trailing underscores
    until it is unique.

    Args:
        dataset (Dataset): The dataset to convert.
        target_name (str | None): Preferred name for the label column.

    Returns:
        pl.DataFrame: Feature columns in order, followed by the label column.
    """
    label_column = target_name if target_name is not None else dataset.target_name
    while label_column in dataset.feature_names:
        label_column = f"{label_column}_"
    columns = {name: dataset.features[:, index] for index, name in enumerate(dataset.feature_names)}
    columns[label_column] = dataset.labels
    return pl.DataFrame(columns)


def to_markdown_table(
    df: pl.DataFrame,
    num_rows: int = 10,
    *,
    max_columns: int | None = None,
) -> str:
    """Convert a Polars DataFrame to a markdown table string.

    This function temporarily modifies global ``pl.Config`` state to render
    the table and is not thread-safe.

    Args:
        df (pl.DataFrame): The DataFrame to convert.
        num_rows (int): Maximum number of rows to display. Defaults to 10.
        max_columns (int | None): Maximum number of columns to display; wider
            frames are elided in the middle. `None` shows every column.

    Returns:
        str: Markdown-formatted table string.

    Raises:
        ValueError: If `num_rows` or `max_columns` is less than 1.

    Examples:
        >>> df = pl.DataFrame({"a": [1, 2, 3], "b": [4, 5, 6]})
        >>> print(to_markdown_table(df, num_rows=3))
        | a | b |
        |---|---|
        | 1 | 4 |
        | 2 | 5 |
        | 3 | 6 |
    """
    if num_rows < 1:
        raise ValueError(f"num_rows must be at least 1, got {num_rows}")
    if max_columns is not None and max_columns < 1:
        raise ValueError(f"max_columns must be at least 1, got {max_columns}")

    with pl.Config(
        tbl_formatting="MARKDOWN",
        tbl_hide_column_data_types=True,
        tbl_hide_column_names=False,
        tbl_hide_dataframe_shape=True,
        tbl_rows=num_rows,
        tbl_cols=df.width if max_columns is None else max_columns,
    ):
        return str(df.head(num_rows))


def describe_dataset(dataset: Dataset, *, preview_rows: int = 5, max_columns: int = 12) -> str:
    """Build the console summary of a dataset: a shape line and a markdown preview.

    Args:
        dataset (Dataset): The dataset to summarize.
        preview_rows (int): Number of leading rows in the preview.
        max_columns (int): Maximum number of columns in the preview.

    Returns:
        str: Multi-line summary text.
    """
    classes = sorted({int(label) for label in dataset.labels})
    header = (
        f"Dataset: {len(dataset)} rows, {dataset.feature_count} features, "
        f"{len(classes)} classes {classes}"
    )
    preview = to_markdown_table(dataset_to_frame(dataset), num_rows=preview_rows, max_columns=max_columns)
    return f"{header}\n{preview}"
