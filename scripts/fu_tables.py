"""
Keyed access to tidy final-to-useful tables.

- get_one_df_by_coun_and_yr: rows of a table for a country/year (or sets of them)
- get_one_exemplar_table_list: ordered exemplar subsets for one year
- tidy_by_year: reshape wide-by-year tables into tidy records
- normalize_exemplar_lists: turn exemplar cells into ordered lists of codes
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional

import pandas as pd

from fu_mappings import EXEMPLAR_NAMES, EXEMPLAR_SEPARATORS, IEA_COLS, TEMPLATE_COLS

_EXEMPLAR_SPLIT = re.compile("|".join(re.escape(sep) for sep in EXEMPLAR_SEPARATORS))


def _as_members(value: object) -> list:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return [value]
    return list(value)


def get_one_df_by_coun_and_yr(df: pd.DataFrame, coun: object, yr: object) -> pd.DataFrame:
    """
    Rows of `df` whose country is in `coun` and whose year is in `yr`.
    Both arguments may be scalars or collections. An empty frame (same columns)
    comes back when nothing matches.
    """
    mask = df[IEA_COLS.country].isin(_as_members(coun)) & df[IEA_COLS.year].isin(_as_members(yr))
    return df[mask]


def get_one_exemplar_table_list(
    tidy_incomplete_tables: pd.DataFrame,
    exemplar_strings: Iterable[str],
    yr: int,
) -> List[pd.DataFrame]:
    """
    One subset of `tidy_incomplete_tables` per exemplar country, in the given order.
    Exemplars without rows for `yr` yield empty subsets.
    """
    return [
        get_one_df_by_coun_and_yr(tidy_incomplete_tables, exemplar_coun, yr)
        for exemplar_coun in exemplar_strings
    ]


def detect_year_columns(df: pd.DataFrame) -> list:
    return [col for col in df.columns if str(col).strip().isdigit()]


def tidy_by_year(df: pd.DataFrame) -> pd.DataFrame:
    """
    Return a tidy copy of `df`.

    Tables that already carry Year and .values columns are returned as-is.
    Wide-by-year tables (one numeric column per year, e.g. "1971", "2000")
    are melted into Year/.values records; empty cells are dropped.
    """
    year_col = IEA_COLS.year
    values_col = TEMPLATE_COLS.values
    if year_col in df.columns and values_col in df.columns:
        out = df.copy()
        out[year_col] = out[year_col].astype(int)
        return out

    year_cols = detect_year_columns(df)
    if not year_cols:
        raise ValueError(
            f"Table is neither tidy ({year_col}/{values_col} columns) nor wide by year (no year columns found)"
        )
    id_cols = [col for col in df.columns if col not in year_cols]
    tidy = df.melt(id_vars=id_cols, value_vars=year_cols, var_name=year_col, value_name=values_col)
    tidy = tidy.dropna(subset=[values_col])
    tidy[year_col] = tidy[year_col].astype(str).str.strip().astype(int)
    return tidy.reset_index(drop=True)


def filter_max_year(df: pd.DataFrame, max_year: Optional[int]) -> pd.DataFrame:
    if max_year is None:
        return df
    return df[df[IEA_COLS.year] <= max_year]


def _split_exemplar_cell(cell: object) -> List[str]:
    if isinstance(cell, str):
        return [part.strip() for part in _EXEMPLAR_SPLIT.split(cell) if part.strip()]
    if not pd.api.types.is_list_like(cell):
        if cell is None or pd.isna(cell):
            return []
        cell = [cell]
    return [str(code).strip() for code in cell if not pd.isna(code) and str(code).strip()]


def normalize_exemplar_lists(exemplar_lists: pd.DataFrame) -> pd.DataFrame:
    """
    Copy of `exemplar_lists` whose Exemplars cells are ordered lists of country codes.

    Cells may hold lists or delimited strings ("ZAF; KEN"). A country listed as
    its own exemplar is dropped from its list (with a warning), since its own
    data is already used before any exemplar is consulted.
    """
    country_col = IEA_COLS.country
    exemplars_col = EXEMPLAR_NAMES.exemplars
    missing = [c for c in (country_col, IEA_COLS.year, exemplars_col) if c not in exemplar_lists.columns]
    if missing:
        raise ValueError(f"Exemplar lists are missing expected columns: {missing}")

    out = exemplar_lists.copy()
    cleaned: List[List[str]] = []
    for _, row in out.iterrows():
        codes = _split_exemplar_cell(row[exemplars_col])
        coun = str(row[country_col]).strip()
        if coun in codes:
            print(f"[WARN] {coun} {row[IEA_COLS.year]} lists itself as an exemplar; ignoring that entry")
            codes = [code for code in codes if code != coun]
        cleaned.append(codes)
    out[exemplars_col] = pd.Series(cleaned, index=out.index, dtype=object)
    out[IEA_COLS.year] = out[IEA_COLS.year].astype(int)
    return out
