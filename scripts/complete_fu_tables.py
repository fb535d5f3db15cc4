"""
Complete one country/year of final-to-useful (FU) data from ranked exemplar tables.

Both completers follow the same procedure:
- derive the keys the country needs from its context data
- keep the keys the country already has ("own data")
- for every missing key, take the first exemplar table that has it
- recompute flow-based quantities from the country's own context data

Keys no exemplar can supply are kept as records with an empty value and an
empty source so downstream steps can see the residual gaps.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from fu_mappings import (
    ALLOCATION_KEY_COLS,
    ALLOCATION_ROW_COLS,
    ALLOCATION_SUM_TOLERANCE,
    CONSUMPTION_LEDGER_SIDE,
    EIOU_FLOW_AGGREGATION_POINT,
    ETA_FU_KEY_COLS,
    ETA_FU_QUANTITIES,
    IEA_COLS,
    METADATA_COLS,
    OWN_DATA_SOURCE,
    TEMPLATE_COLS,
    allocation_quantity,
    is_allocation_quantity,
    is_non_energy,
)

Key = Tuple[object, ...]


def check_which_quantity(which_quantity: Iterable[str]) -> List[str]:
    """
    Validate the efficiency quantities to complete; raises ValueError on anything
    outside eta.fu / phi.u or on an empty request.
    """
    if isinstance(which_quantity, str):
        which_quantity = [which_quantity]
    requested = list(dict.fromkeys(which_quantity))
    if not requested:
        raise ValueError(f"which_quantity must name at least one of {list(ETA_FU_QUANTITIES)}")
    unsupported = [q for q in requested if q not in ETA_FU_QUANTITIES]
    if unsupported:
        raise ValueError(
            f"Unsupported quantity {unsupported}; which_quantity must be one or both of {list(ETA_FU_QUANTITIES)}"
        )
    return requested


def _unit_metadata(coun: str, *frames: pd.DataFrame) -> Dict[str, object]:
    meta: Dict[str, object] = {IEA_COLS.country: coun}
    for col in METADATA_COLS:
        if col == IEA_COLS.country:
            continue
        for frame in frames:
            if frame is None or frame.empty or col not in frame.columns:
                continue
            vals = frame[col].dropna()
            if not vals.empty:
                meta[col] = vals.iloc[0]
                break
    return meta


def _missing_metadata(df: pd.DataFrame, meta: Dict[str, object]) -> Dict[str, object]:
    return {col: val for col, val in meta.items() if col not in df.columns}


def _label(meta: Dict[str, object]) -> str:
    return f"{meta[IEA_COLS.country]} {meta.get(IEA_COLS.year, '(unknown year)')}"


def _require_columns(df: pd.DataFrame, required: Sequence[str], what: str, meta: Dict[str, object]) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{what} for {_label(meta)} is missing expected columns: {missing}")


def _require_keys(df: pd.DataFrame, key_cols: Sequence[str], what: str, meta: Dict[str, object]) -> None:
    bad = df[list(key_cols)].isna().any(axis=1)
    if bad.any():
        raise ValueError(
            f"{what} for {_label(meta)} has {int(bad.sum())} row(s) with an empty {list(key_cols)} key"
        )


def _single_unit(units: pd.Series, what: str, meta: Dict[str, object]) -> Optional[str]:
    found = [u for u in units.dropna().unique() if str(u).strip()]
    if len(found) > 1:
        raise ValueError(f"{what} for {_label(meta)} mixes energy units: {sorted(map(str, found))}")
    return found[0] if found else None


def _group_rows(df: pd.DataFrame, key_cols: Sequence[str]) -> Dict[Key, pd.DataFrame]:
    if df.empty:
        return {}
    return {
        (key if isinstance(key, tuple) else (key,)): frame
        for key, frame in df.groupby(list(key_cols), sort=False)
    }


def _exemplar_code(frame: pd.DataFrame) -> object:
    return frame[IEA_COLS.country].iloc[0] if IEA_COLS.country in frame.columns else None


def _concat(pieces: List[pd.DataFrame], columns: List[str]) -> pd.DataFrame:
    pieces = [p for p in pieces if not p.empty]
    if not pieces:
        return pd.DataFrame(columns=columns)
    return pd.concat(pieces, ignore_index=True).reindex(columns=columns)


def _output_columns(meta_cols: Iterable[str], row_cols: Sequence[str], source_col: str) -> List[str]:
    return [*meta_cols, *row_cols, IEA_COLS.unit, TEMPLATE_COLS.values, source_col]


def allocation_destinations(
    tidy_specified_iea_data: pd.DataFrame, meta: Optional[Dict[str, object]] = None
) -> pd.DataFrame:
    """
    Final-energy flows that need an allocation: consumption and energy industry
    own use rows with a non-zero E.dot, excluding non-energy use.
    Returns one row per (Ef.product, Destination) with its absolute E.dot and unit.
    """
    meta = meta or {IEA_COLS.country: "(unknown country)"}
    cols = [TEMPLATE_COLS.ef_product, TEMPLATE_COLS.destination, IEA_COLS.unit, IEA_COLS.e_dot]
    iea = tidy_specified_iea_data
    if iea is None or iea.empty:
        return pd.DataFrame(columns=cols)
    _require_columns(
        iea,
        [IEA_COLS.ledger_side, IEA_COLS.flow_aggregation_point, IEA_COLS.flow, IEA_COLS.product, IEA_COLS.e_dot],
        "IEA data",
        meta,
    )

    fap = iea[IEA_COLS.flow_aggregation_point]
    needs_allocation = (iea[IEA_COLS.ledger_side] == CONSUMPTION_LEDGER_SIDE) | (fap == EIOU_FLOW_AGGREGATION_POINT)
    needs_allocation &= ~fap.map(is_non_energy).astype(bool)
    e_dot = pd.to_numeric(iea[IEA_COLS.e_dot], errors="coerce")
    rows = iea[needs_allocation & e_dot.notna() & (e_dot != 0)].copy()
    if rows.empty:
        return pd.DataFrame(columns=cols)
    if IEA_COLS.unit not in rows.columns:
        rows[IEA_COLS.unit] = None
    _single_unit(rows[IEA_COLS.unit], "IEA data", meta)

    rows[IEA_COLS.e_dot] = pd.to_numeric(rows[IEA_COLS.e_dot]).abs()
    rows = rows.rename(columns={IEA_COLS.product: TEMPLATE_COLS.ef_product, IEA_COLS.flow: TEMPLATE_COLS.destination})
    _require_keys(rows, ALLOCATION_KEY_COLS, "IEA data", meta)
    return (
        rows.groupby(list(ALLOCATION_KEY_COLS), as_index=False, sort=False)
        .agg({IEA_COLS.unit: "first", IEA_COLS.e_dot: "sum"})
        .reindex(columns=cols)
    )


def _allocation_rows(df: pd.DataFrame) -> pd.DataFrame:
    mask = df[TEMPLATE_COLS.quantity].map(is_allocation_quantity).astype(bool) & df[TEMPLATE_COLS.values].notna()
    return df.loc[mask]


def _warn_allocation_sums(c_rows: pd.DataFrame, meta: Dict[str, object]) -> None:
    sums = c_rows.groupby(list(ALLOCATION_KEY_COLS), sort=False)[TEMPLATE_COLS.values].sum()
    for key, total in sums.items():
        if abs(float(total) - 1.0) > ALLOCATION_SUM_TOLERANCE:
            print(f"[WARN] Allocations for {_label(meta)} {key} sum to {float(total):.6g}, not 1")


def complete_fu_allocation_table(
    fu_allocation_table: pd.DataFrame,
    country_to_complete: str,
    exemplar_fu_allocation_tables: Sequence[pd.DataFrame],
    tidy_specified_iea_data: pd.DataFrame,
) -> pd.DataFrame:
    """
    Fill missing (Ef.product, Destination) allocations for one country and year.

    A group is present when the country has any C_n [%] value for it. Each
    missing group is copied whole (all machines, values and units as-is) from
    the first exemplar table that has it; C.source records the exemplar code.
    E.dot and E.dot [%] rows are rebuilt from the country's own IEA data, so
    absolute flows follow from the borrowed fractions times the country's own
    totals.
    """
    own = fu_allocation_table
    meta = _unit_metadata(country_to_complete, tidy_specified_iea_data, own, *exemplar_fu_allocation_tables)
    required = [*ALLOCATION_ROW_COLS, TEMPLATE_COLS.values]
    _require_columns(own, required, "Allocation table", meta)
    for ex in exemplar_fu_allocation_tables:
        _require_columns(ex, required, "Exemplar allocation table", meta)

    meta_cols = [c for c in METADATA_COLS if c in meta]
    c_source = TEMPLATE_COLS.c_source
    columns = _output_columns(meta_cols, ALLOCATION_ROW_COLS, c_source)

    own_c = _allocation_rows(own)
    _require_keys(own_c, ALLOCATION_ROW_COLS, "Allocation table", meta)
    pieces: List[pd.DataFrame] = [own_c.assign(**_missing_metadata(own_c, meta), **{c_source: OWN_DATA_SOURCE})]
    present = set(_group_rows(own_c, ALLOCATION_KEY_COLS))

    expected = allocation_destinations(tidy_specified_iea_data, meta)
    exemplar_groups = [_group_rows(_allocation_rows(ex), ALLOCATION_KEY_COLS) for ex in exemplar_fu_allocation_tables]

    unfilled: List[Key] = []
    for _, dest in expected.iterrows():
        key: Key = tuple(dest[c] for c in ALLOCATION_KEY_COLS)
        if key in present:
            continue
        for groups in exemplar_groups:
            borrowed = groups.get(key)
            if borrowed is not None:
                pieces.append(borrowed.assign(**meta, **{c_source: _exemplar_code(borrowed)}))
                break
        else:
            unfilled.append(key)
            pieces.append(
                pd.DataFrame(
                    [
                        {
                            **meta,
                            TEMPLATE_COLS.ef_product: key[0],
                            TEMPLATE_COLS.destination: key[1],
                            TEMPLATE_COLS.quantity: allocation_quantity(1),
                            c_source: None,
                        }
                    ]
                )
            )
    if unfilled:
        print(f"[WARN] {_label(meta)}: no exemplar supplies allocations for {unfilled}")

    completed_c = _concat(pieces, columns)
    _warn_allocation_sums(_allocation_rows(completed_c), meta)

    flow_rows: List[Dict[str, object]] = []
    total = float(expected[IEA_COLS.e_dot].sum()) if not expected.empty else 0.0
    for _, dest in expected.iterrows():
        base = {
            **meta,
            TEMPLATE_COLS.ef_product: dest[TEMPLATE_COLS.ef_product],
            TEMPLATE_COLS.destination: dest[TEMPLATE_COLS.destination],
            c_source: OWN_DATA_SOURCE,
        }
        flow_rows.append(
            {
                **base,
                TEMPLATE_COLS.quantity: TEMPLATE_COLS.e_dot,
                IEA_COLS.unit: dest[IEA_COLS.unit],
                TEMPLATE_COLS.values: float(dest[IEA_COLS.e_dot]),
            }
        )
        flow_rows.append(
            {
                **base,
                TEMPLATE_COLS.quantity: TEMPLATE_COLS.e_dot_perc,
                TEMPLATE_COLS.values: float(dest[IEA_COLS.e_dot]) / total if total else float("nan"),
            }
        )
    return _concat([completed_c, pd.DataFrame(flow_rows)], columns)


def machine_flows(fu_allocation_table: pd.DataFrame, meta: Optional[Dict[str, object]] = None) -> pd.DataFrame:
    """
    E.dot_machine per (Machine, Eu.product): the sum over allocation groups of
    C_n [%] x the group's E.dot, plus each machine's share of the total.
    Machines whose groups have no E.dot get an empty flow.
    """
    meta = meta or {IEA_COLS.country: "(unknown country)"}
    cols = [*ETA_FU_KEY_COLS, IEA_COLS.unit, TEMPLATE_COLS.e_dot_machine, TEMPLATE_COLS.e_dot_machine_perc]
    alloc = fu_allocation_table
    c_rows = _allocation_rows(alloc)
    c_rows = c_rows[c_rows[list(ETA_FU_KEY_COLS)].notna().all(axis=1)]
    if c_rows.empty:
        return pd.DataFrame(columns=cols)

    e_dot_rows = alloc[(alloc[TEMPLATE_COLS.quantity] == TEMPLATE_COLS.e_dot) & alloc[TEMPLATE_COLS.values].notna()]
    unit = _single_unit(e_dot_rows[IEA_COLS.unit], "Allocation E.dot rows", meta) if IEA_COLS.unit in e_dot_rows else None
    if e_dot_rows.empty:
        group_flows = pd.DataFrame(
            {
                **{col: pd.Series(dtype=object) for col in ALLOCATION_KEY_COLS},
                TEMPLATE_COLS.e_dot: pd.Series(dtype=float),
            }
        )
    else:
        group_flows = e_dot_rows.groupby(list(ALLOCATION_KEY_COLS), sort=False)[TEMPLATE_COLS.values].sum()
        group_flows = group_flows.rename(TEMPLATE_COLS.e_dot).reset_index()

    merged = c_rows[[*ALLOCATION_ROW_COLS, TEMPLATE_COLS.values]].merge(
        group_flows, on=list(ALLOCATION_KEY_COLS), how="left"
    )
    if merged[TEMPLATE_COLS.e_dot].isna().any():
        lacking = merged[merged[TEMPLATE_COLS.e_dot].isna()][list(ALLOCATION_KEY_COLS)].drop_duplicates()
        print(f"[WARN] {_label(meta)}: no E.dot for allocation groups {list(lacking.itertuples(index=False, name=None))}")
    merged[TEMPLATE_COLS.e_dot_machine] = merged[TEMPLATE_COLS.values] * merged[TEMPLATE_COLS.e_dot]

    flows = (
        merged.groupby(list(ETA_FU_KEY_COLS), sort=False)[TEMPLATE_COLS.e_dot_machine]
        .sum(min_count=1)
        .reset_index()
    )
    # A machine fed by any group lacking E.dot has an unknown total flow.
    incomplete = merged[merged[TEMPLATE_COLS.e_dot].isna()][list(ETA_FU_KEY_COLS)].drop_duplicates()
    if not incomplete.empty:
        flagged = flows.merge(incomplete.assign(_gap=True), on=list(ETA_FU_KEY_COLS), how="left")["_gap"].eq(True)
        flows.loc[flagged.values, TEMPLATE_COLS.e_dot_machine] = float("nan")

    total = flows[TEMPLATE_COLS.e_dot_machine].sum()
    flows[TEMPLATE_COLS.e_dot_machine_perc] = flows[TEMPLATE_COLS.e_dot_machine] / total if total else float("nan")
    flows[IEA_COLS.unit] = unit
    return flows.reindex(columns=cols)


def complete_eta_fu_table(
    eta_fu_table: pd.DataFrame,
    exemplar_eta_fu_tables: Sequence[pd.DataFrame],
    fu_allocation_table: pd.DataFrame,
    country_to_complete: str,
    which_quantity: Iterable[str] = ETA_FU_QUANTITIES,
) -> pd.DataFrame:
    """
    Fill missing eta.fu / phi.u values for one country and year.

    Every (Machine, Eu.product) in the country's completed allocation table needs
    each requested quantity. Quantities are resolved independently, so a machine
    may keep its own eta.fu while borrowing phi.u. E.dot_machine and
    E.dot_machine [%] are recomputed from the allocation table, never copied.
    """
    requested = check_which_quantity(which_quantity)
    own = eta_fu_table
    meta = _unit_metadata(country_to_complete, fu_allocation_table, own, *exemplar_eta_fu_tables)
    required = [*ETA_FU_KEY_COLS, TEMPLATE_COLS.quantity, TEMPLATE_COLS.values]
    _require_columns(own, required, "Efficiency table", meta)
    for ex in exemplar_eta_fu_tables:
        _require_columns(ex, required, "Exemplar efficiency table", meta)
    _require_columns(fu_allocation_table, [*ALLOCATION_ROW_COLS, TEMPLATE_COLS.values], "Allocation table", meta)

    meta_cols = [c for c in METADATA_COLS if c in meta]
    source = TEMPLATE_COLS.eta_fu_phi_u_source
    row_cols = [*ETA_FU_KEY_COLS, TEMPLATE_COLS.quantity]
    columns = _output_columns(meta_cols, row_cols, source)

    flows = machine_flows(fu_allocation_table, meta)
    machines: List[Key] = [tuple(k) for k in flows[list(ETA_FU_KEY_COLS)].itertuples(index=False, name=None)]

    pieces: List[pd.DataFrame] = []
    for quantity in requested:
        own_q = own[(own[TEMPLATE_COLS.quantity] == quantity) & own[TEMPLATE_COLS.values].notna()]
        _require_keys(own_q, ETA_FU_KEY_COLS, "Efficiency table", meta)
        pieces.append(own_q.assign(**_missing_metadata(own_q, meta), **{source: OWN_DATA_SOURCE}))
        present = set(_group_rows(own_q, ETA_FU_KEY_COLS))
        exemplar_rows = [
            _group_rows(ex[(ex[TEMPLATE_COLS.quantity] == quantity) & ex[TEMPLATE_COLS.values].notna()], ETA_FU_KEY_COLS)
            for ex in exemplar_eta_fu_tables
        ]

        unfilled: List[Key] = []
        for key in machines:
            if key in present:
                continue
            for groups in exemplar_rows:
                borrowed = groups.get(key)
                if borrowed is not None:
                    pieces.append(borrowed.head(1).assign(**meta, **{source: _exemplar_code(borrowed)}))
                    break
            else:
                unfilled.append(key)
                pieces.append(
                    pd.DataFrame(
                        [
                            {
                                **meta,
                                TEMPLATE_COLS.machine: key[0],
                                TEMPLATE_COLS.eu_product: key[1],
                                TEMPLATE_COLS.quantity: quantity,
                                source: None,
                            }
                        ]
                    )
                )
        if unfilled:
            print(f"[WARN] {_label(meta)}: no exemplar supplies {quantity} for {unfilled}")

    derived: List[Dict[str, object]] = []
    for _, flow in flows.iterrows():
        base = {
            **meta,
            TEMPLATE_COLS.machine: flow[TEMPLATE_COLS.machine],
            TEMPLATE_COLS.eu_product: flow[TEMPLATE_COLS.eu_product],
            source: OWN_DATA_SOURCE,
        }
        derived.append(
            {
                **base,
                TEMPLATE_COLS.quantity: TEMPLATE_COLS.e_dot_machine,
                IEA_COLS.unit: flow[IEA_COLS.unit],
                TEMPLATE_COLS.values: flow[TEMPLATE_COLS.e_dot_machine],
            }
        )
        derived.append(
            {
                **base,
                TEMPLATE_COLS.quantity: TEMPLATE_COLS.e_dot_machine_perc,
                TEMPLATE_COLS.values: flow[TEMPLATE_COLS.e_dot_machine_perc],
            }
        )
    pieces.append(pd.DataFrame(derived))
    return _concat(pieces, columns)
