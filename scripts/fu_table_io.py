"""
Load and save the flat CSV tables used by the FU completion workflow.

Kinds:
- allocation: FU allocation table (tidy or wide by year)
- efficiency: FU efficiency table (tidy or wide by year)
- iea: tidy specified IEA data
- exemplars: Country, Year, Exemplars (codes separated by ";", "," or "|")
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import pandas as pd

from fu_mappings import EXEMPLAR_NAMES, IEA_COLS, TABLE_KINDS, TEMPLATE_COLS
from fu_tables import normalize_exemplar_lists, tidy_by_year

REQUIRED_COLUMNS: Dict[str, List[str]] = {
    "allocation": [
        IEA_COLS.country,
        TEMPLATE_COLS.ef_product,
        TEMPLATE_COLS.destination,
        TEMPLATE_COLS.machine,
        TEMPLATE_COLS.eu_product,
        TEMPLATE_COLS.quantity,
    ],
    "efficiency": [
        IEA_COLS.country,
        TEMPLATE_COLS.machine,
        TEMPLATE_COLS.eu_product,
        TEMPLATE_COLS.quantity,
    ],
    "iea": [
        IEA_COLS.country,
        IEA_COLS.year,
        IEA_COLS.ledger_side,
        IEA_COLS.flow_aggregation_point,
        IEA_COLS.flow,
        IEA_COLS.product,
        IEA_COLS.unit,
        IEA_COLS.e_dot,
    ],
    "exemplars": [IEA_COLS.country, IEA_COLS.year, EXEMPLAR_NAMES.exemplars],
}


def load_table(path: str | Path, kind: str) -> pd.DataFrame:
    """
    Read a table of the given kind. Allocation and efficiency tables come back
    tidy; exemplar tables come back with list-valued Exemplars cells.
    """
    if kind not in TABLE_KINDS:
        raise ValueError(f"Unknown table kind {kind!r}; expected one of {sorted(TABLE_KINDS)}")
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{kind} table not found: {path}")

    df = pd.read_csv(path)
    df.columns = [str(col).strip() for col in df.columns]
    missing = [c for c in REQUIRED_COLUMNS[kind] if c not in df.columns]
    if missing:
        raise RuntimeError(f"Missing expected columns in {path}: {missing}")

    if kind in {"allocation", "efficiency"}:
        df = tidy_by_year(df)
        df[TEMPLATE_COLS.values] = pd.to_numeric(df[TEMPLATE_COLS.values], errors="coerce")
    elif kind == "iea":
        df[IEA_COLS.year] = df[IEA_COLS.year].astype(int)
        df[IEA_COLS.e_dot] = pd.to_numeric(df[IEA_COLS.e_dot], errors="coerce")
    else:
        df = normalize_exemplar_lists(df)
    print(f"[INFO] Loaded {len(df)} {kind} row(s) from {path}")
    return df


def save_table(df: pd.DataFrame, path: str | Path) -> Path:
    """
    Write `df` as CSV, creating parent folders. List-valued Exemplars cells are
    joined with "; ".
    """
    path = Path(path)
    out = df.copy()
    exemplars_col = EXEMPLAR_NAMES.exemplars
    if exemplars_col in out.columns:
        out[exemplars_col] = out[exemplars_col].map(
            lambda codes: "; ".join(codes) if isinstance(codes, (list, tuple)) else codes
        )
    path.parent.mkdir(parents=True, exist_ok=True)
    out.to_csv(path, index=False)
    print(f"[INFO] Wrote {len(out)} row(s) to {path}")
    return path
