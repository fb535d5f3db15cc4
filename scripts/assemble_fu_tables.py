"""
Assemble completed final-to-useful allocation and efficiency tables for many
countries and years.

Each (country, year) row of the exemplar lists becomes one CompletionUnit that
owns its incomplete table, its ordered exemplar tables and its context data.
Units are independent; they are completed in order and concatenated into one
tidy table.

Example (exemplar lists):
    Country  Year  Exemplars
    GHA      1971  ["ZAF"]
    GHA      2000  ["ZAF", "KEN"]
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

import pandas as pd

from complete_fu_tables import check_which_quantity, complete_eta_fu_table, complete_fu_allocation_table
from fu_mappings import ETA_FU_QUANTITIES, EXEMPLAR_NAMES, IEA_COLS
from fu_tables import (
    filter_max_year,
    get_one_df_by_coun_and_yr,
    get_one_exemplar_table_list,
    normalize_exemplar_lists,
    tidy_by_year,
)


@dataclass
class CompletionUnit:
    country: str
    year: int
    exemplars: List[str]
    incomplete_table: pd.DataFrame
    exemplar_tables: List[pd.DataFrame]
    context: pd.DataFrame
    completed: Optional[pd.DataFrame] = field(default=None, repr=False)


def _as_country_list(countries: Iterable[str] | str) -> List[str]:
    if isinstance(countries, str):
        return [countries]
    return list(countries)


def build_completion_units(
    tidy_incomplete_tables: pd.DataFrame,
    exemplar_lists: pd.DataFrame,
    context_data: pd.DataFrame,
    countries: Iterable[str] | str,
    max_year: Optional[int] = None,
) -> List[CompletionUnit]:
    """
    One unit per (country, year) exemplar-list row for the requested countries,
    in country order then exemplar-list order.
    """
    lists = filter_max_year(normalize_exemplar_lists(exemplar_lists), max_year)
    units: List[CompletionUnit] = []
    for coun in _as_country_list(countries):
        coun_rows = lists[lists[IEA_COLS.country] == coun]
        for _, row in coun_rows.iterrows():
            yr = int(row[IEA_COLS.year])
            exemplars = list(row[EXEMPLAR_NAMES.exemplars])
            units.append(
                CompletionUnit(
                    country=coun,
                    year=yr,
                    exemplars=exemplars,
                    incomplete_table=get_one_df_by_coun_and_yr(tidy_incomplete_tables, coun, yr),
                    exemplar_tables=get_one_exemplar_table_list(tidy_incomplete_tables, exemplars, yr),
                    context=get_one_df_by_coun_and_yr(context_data, coun, yr),
                )
            )
    return units


def run_completion_units(
    units: List[CompletionUnit],
    complete: Callable[[CompletionUnit], pd.DataFrame],
    what: str,
) -> List[CompletionUnit]:
    """
    Complete each unit in place. A unit that fails validation aborts the run with
    an error naming the country and year.
    """
    for unit in units:
        try:
            unit.completed = complete(unit)
        except (KeyError, ValueError) as exc:
            raise RuntimeError(f"Completing {what} for {unit.country} {unit.year} failed: {exc}") from exc
    return units


def collect_completed(units: List[CompletionUnit], what: str) -> Optional[pd.DataFrame]:
    """
    Concatenate completed unit tables. Returns None when there is nothing to return.
    """
    pieces = [u.completed for u in units if u.completed is not None and not u.completed.empty]
    if not pieces:
        print(f"[INFO] No completed {what} produced")
        return None
    out = pd.concat(pieces, ignore_index=True)
    print(f"[INFO] Completed {what}: {len(pieces)} country-year unit(s), {len(out)} row(s)")
    return out


def assemble_fu_allocation_tables(
    incomplete_allocation_tables: pd.DataFrame,
    exemplar_lists: pd.DataFrame,
    specified_iea_data: pd.DataFrame,
    countries: Iterable[str] | str,
    max_year: Optional[int] = None,
) -> Optional[pd.DataFrame]:
    """
    Complete FU allocation tables for `countries` with help from exemplar countries.

    `incomplete_allocation_tables` may be tidy or wide by year. Returns one tidy
    table with a C.source column, or None when no country has exemplar-list rows.
    """
    tidy_incomplete = filter_max_year(tidy_by_year(incomplete_allocation_tables), max_year)
    units = build_completion_units(tidy_incomplete, exemplar_lists, specified_iea_data, countries, max_year)
    run_completion_units(
        units,
        lambda u: complete_fu_allocation_table(
            fu_allocation_table=u.incomplete_table,
            country_to_complete=u.country,
            exemplar_fu_allocation_tables=u.exemplar_tables,
            tidy_specified_iea_data=u.context,
        ),
        what="FU allocation tables",
    )
    return collect_completed(units, "FU allocation tables")


def assemble_eta_fu_tables(
    incomplete_eta_fu_tables: pd.DataFrame,
    exemplar_lists: pd.DataFrame,
    completed_fu_allocation_tables: pd.DataFrame,
    countries: Iterable[str] | str,
    max_year: Optional[int] = None,
    which_quantity: Iterable[str] = ETA_FU_QUANTITIES,
) -> Optional[pd.DataFrame]:
    """
    Complete FU efficiency tables for `countries` with help from exemplar countries.

    An efficiency is needed for every machine in `completed_fu_allocation_tables`
    (typically the output of assemble_fu_allocation_tables). `which_quantity`
    must be one or both of eta.fu and phi.u and is checked before any work.
    Returns one tidy table with an eta.fu.phi.u.source column, or None.
    """
    requested = check_which_quantity(which_quantity)
    tidy_incomplete = filter_max_year(tidy_by_year(incomplete_eta_fu_tables), max_year)
    tidy_allocations = filter_max_year(tidy_by_year(completed_fu_allocation_tables), max_year)
    units = build_completion_units(tidy_incomplete, exemplar_lists, tidy_allocations, countries, max_year)
    run_completion_units(
        units,
        lambda u: complete_eta_fu_table(
            eta_fu_table=u.incomplete_table,
            exemplar_eta_fu_tables=u.exemplar_tables,
            fu_allocation_table=u.context,
            country_to_complete=u.country,
            which_quantity=requested,
        ),
        what="FU efficiency tables",
    )
    return collect_completed(units, "FU efficiency tables")
