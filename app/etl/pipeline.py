from pathlib import Path

import polars as pl


class DataExtractor:
    """Handles data ingestion from the demo CSV files.

    Every column is read as text; typing is left to the domain models so
    that seed rows go through the same validation as API payloads.
    """

    @staticmethod
    def read_csv(file_path: Path) -> pl.DataFrame:
        """Reads a CSV file into a Polars DataFrame of string columns."""
        return pl.read_csv(file_path, infer_schema_length=0)

class DataTransformer:
    """Light clean-up applied to raw seed frames before loading."""

    @staticmethod
    def standardize_columns(df: pl.DataFrame) -> pl.DataFrame:
        """Renames columns to trimmed snake_case."""
        return df.rename({c: c.strip().lower().replace(" ", "_") for c in df.columns})

    @staticmethod
    def strip_text(df: pl.DataFrame) -> pl.DataFrame:
        """Trims every string column and turns blank cells into nulls."""
        return df.with_columns([
            pl.when(pl.col(c).str.strip_chars() == "")
            .then(None)
            .otherwise(pl.col(c).str.strip_chars())
            .alias(c)
            for c in df.columns
        ])

    @classmethod
    def clean(cls, df: pl.DataFrame) -> pl.DataFrame:
        return cls.strip_text(cls.standardize_columns(df))

    @staticmethod
    def to_records(df: pl.DataFrame) -> list[dict]:
        """Rows as dictionaries, with null cells removed so model defaults apply."""
        return [
            {key: value for key, value in row.items() if value is not None}
            for row in df.to_dicts()
        ]
