#!/usr/bin/env python3
"""
Complete FU allocation and FU efficiency tables in one shot.

Allocation tables are completed first; the completed allocations then define
which machines need efficiencies.

Examples:
  python scripts/run_fu_completion.py --countries GHA ZAF
  python scripts/run_fu_completion.py --countries GHA --max-year 2000 --which-quantity eta.fu
"""
from __future__ import annotations

import argparse
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from assemble_fu_tables import assemble_eta_fu_tables, assemble_fu_allocation_tables
from complete_fu_tables import check_which_quantity
from fu_mappings import ETA_FU_QUANTITIES
from fu_table_io import load_table, save_table


@dataclass(frozen=True)
class FUCompletionConfig:
    allocation_input: Path = Path("data/fu_allocation_tables.csv")
    efficiency_input: Path = Path("data/eta_fu_tables.csv")
    iea_input: Path = Path("data/specified_iea_data.csv")
    exemplars_input: Path = Path("data/exemplar_lists.csv")
    allocation_output: Path = Path("output/completed_fu_allocation_tables.csv")
    efficiency_output: Path = Path("output/completed_eta_fu_tables.csv")
    max_year: Optional[int] = None
    which_quantity: Tuple[str, ...] = ETA_FU_QUANTITIES
    skip_efficiency: bool = False


CFG = FUCompletionConfig()


def run_workflow(
    countries: Sequence[str], cfg: FUCompletionConfig = CFG
) -> Tuple[Optional[pd.DataFrame], Optional[pd.DataFrame]]:
    """
    Load inputs, complete allocations then efficiencies, and write both outputs.
    Returns (completed_allocations, completed_efficiencies); either may be None
    when no exemplar-list rows cover the requested countries.
    """
    which_quantity = check_which_quantity(cfg.which_quantity)

    incomplete_alloc = load_table(cfg.allocation_input, "allocation")
    exemplar_lists = load_table(cfg.exemplars_input, "exemplars")
    iea_data = load_table(cfg.iea_input, "iea")

    completed_alloc = assemble_fu_allocation_tables(
        incomplete_allocation_tables=incomplete_alloc,
        exemplar_lists=exemplar_lists,
        specified_iea_data=iea_data,
        countries=countries,
        max_year=cfg.max_year,
    )
    if completed_alloc is None:
        print(f"[WARN] No allocation tables completed for {list(countries)}; nothing written")
        return None, None
    save_table(completed_alloc, cfg.allocation_output)

    if cfg.skip_efficiency:
        return completed_alloc, None

    incomplete_eta = load_table(cfg.efficiency_input, "efficiency")
    completed_eta = assemble_eta_fu_tables(
        incomplete_eta_fu_tables=incomplete_eta,
        exemplar_lists=exemplar_lists,
        completed_fu_allocation_tables=completed_alloc,
        countries=countries,
        max_year=cfg.max_year,
        which_quantity=which_quantity,
    )
    if completed_eta is None:
        print(f"[WARN] No efficiency tables completed for {list(countries)}; nothing written")
        return completed_alloc, None
    save_table(completed_eta, cfg.efficiency_output)
    return completed_alloc, completed_eta


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Complete FU allocation and efficiency tables from exemplars.")
    parser.add_argument(
        "--countries",
        nargs="+",
        required=True,
        help="Country codes to complete (space separated).",
    )
    parser.add_argument(
        "--allocation-input",
        default=str(CFG.allocation_input),
        help="CSV of incomplete FU allocation tables (tidy or wide by year).",
    )
    parser.add_argument(
        "--efficiency-input",
        default=str(CFG.efficiency_input),
        help="CSV of incomplete FU efficiency tables (tidy or wide by year).",
    )
    parser.add_argument(
        "--iea-input",
        default=str(CFG.iea_input),
        help="CSV of tidy specified IEA data.",
    )
    parser.add_argument(
        "--exemplars-input",
        default=str(CFG.exemplars_input),
        help="CSV with Country, Year and Exemplars columns.",
    )
    parser.add_argument(
        "--allocation-output",
        default=str(CFG.allocation_output),
        help="Where to write completed FU allocation tables.",
    )
    parser.add_argument(
        "--efficiency-output",
        default=str(CFG.efficiency_output),
        help="Where to write completed FU efficiency tables.",
    )
    parser.add_argument(
        "--max-year",
        type=int,
        default=None,
        help="Latest year to complete (default: all years).",
    )
    parser.add_argument(
        "--which-quantity",
        nargs="+",
        default=list(ETA_FU_QUANTITIES),
        help="Efficiency quantities to complete: eta.fu and/or phi.u.",
    )
    parser.add_argument(
        "--skip-efficiency",
        action="store_true",
        help="Only complete allocation tables.",
    )
    args = parser.parse_args(argv)

    cfg = replace(
        CFG,
        allocation_input=Path(args.allocation_input),
        efficiency_input=Path(args.efficiency_input),
        iea_input=Path(args.iea_input),
        exemplars_input=Path(args.exemplars_input),
        allocation_output=Path(args.allocation_output),
        efficiency_output=Path(args.efficiency_output),
        max_year=args.max_year,
        which_quantity=tuple(args.which_quantity),
        skip_efficiency=args.skip_efficiency,
    )
    completed_alloc, completed_eta = run_workflow(args.countries, cfg)
    alloc_rows = 0 if completed_alloc is None else len(completed_alloc)
    eta_rows = 0 if completed_eta is None else len(completed_eta)
    print(f"Allocation rows: {alloc_rows}, efficiency rows: {eta_rows}")


def run_fu_completion_notebook(
    countries: Sequence[str],
    allocation_input: str = str(CFG.allocation_input),
    efficiency_input: str = str(CFG.efficiency_input),
    iea_input: str = str(CFG.iea_input),
    exemplars_input: str = str(CFG.exemplars_input),
    max_year: Optional[int] = None,
    skip_efficiency: bool = False,
):
    """
    Convenience hook for notebooks: runs the workflow and returns the completed tables.
    """
    cfg = replace(
        CFG,
        allocation_input=Path(allocation_input),
        efficiency_input=Path(efficiency_input),
        iea_input=Path(iea_input),
        exemplars_input=Path(exemplars_input),
        max_year=max_year,
        skip_efficiency=skip_efficiency,
    )
    return run_workflow(countries, cfg)


if __name__ == "__main__":
    main()
