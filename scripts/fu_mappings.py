"""
Centralized column names and labels for final-to-useful (FU) table completion.
Keeping this in one place reduces drift between the loaders, the completers and
the batch assembly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Set, Tuple


@dataclass(frozen=True)
class IEACols:
    country: str = "Country"
    method: str = "Method"
    energy_type: str = "Energy.type"
    last_stage: str = "Last.stage"
    year: str = "Year"
    ledger_side: str = "Ledger.side"
    flow_aggregation_point: str = "Flow.aggregation.point"
    flow: str = "Flow"
    product: str = "Product"
    unit: str = "Unit"
    e_dot: str = "E.dot"


@dataclass(frozen=True)
class TemplateCols:
    ef_product: str = "Ef.product"
    destination: str = "Destination"
    machine: str = "Machine"
    eu_product: str = "Eu.product"
    quantity: str = "Quantity"
    values: str = ".values"
    e_dot: str = "E.dot"
    e_dot_perc: str = "E.dot [%]"
    e_dot_machine: str = "E.dot_machine"
    e_dot_machine_perc: str = "E.dot_machine [%]"
    eta_fu: str = "eta.fu"
    phi_u: str = "phi.u"
    c_source: str = "C.source"
    eta_fu_phi_u_source: str = "eta.fu.phi.u.source"


@dataclass(frozen=True)
class ExemplarNames:
    exemplars: str = "Exemplars"


IEA_COLS = IEACols()
TEMPLATE_COLS = TemplateCols()
EXEMPLAR_NAMES = ExemplarNames()

# Provenance label for values that came from the country's own table.
OWN_DATA_SOURCE = "own data"

# Allocation quantities look like "C_1 [%]", "C_2 [%]", ...
ALLOCATION_QUANTITY_PREFIX = "C_"
ALLOCATION_QUANTITY_SUFFIX = " [%]"

# Quantities that can be borrowed from exemplars in efficiency tables.
ETA_FU_QUANTITIES: Tuple[str, ...] = (TEMPLATE_COLS.eta_fu, TEMPLATE_COLS.phi_u)

# IEA rows that need a final-to-useful allocation.
CONSUMPTION_LEDGER_SIDE = "Consumption"
EIOU_FLOW_AGGREGATION_POINT = "Energy industry own use"
NON_ENERGY_FLOW_AGGREGATION_POINTS: Set[str] = {
    "Non-energy use",
    "Non-energy use industry/transformation/energy",
    "Non-energy use in transport",
    "Non-energy use in other",
}

# Identifying columns carried over onto completed records when present.
METADATA_COLS: Tuple[str, ...] = (
    IEA_COLS.country,
    IEA_COLS.method,
    IEA_COLS.energy_type,
    IEA_COLS.last_stage,
    IEA_COLS.year,
)

ALLOCATION_KEY_COLS: Tuple[str, ...] = (
    TEMPLATE_COLS.ef_product,
    TEMPLATE_COLS.destination,
)
ALLOCATION_ROW_COLS: Tuple[str, ...] = ALLOCATION_KEY_COLS + (
    TEMPLATE_COLS.machine,
    TEMPLATE_COLS.eu_product,
    TEMPLATE_COLS.quantity,
)
ETA_FU_KEY_COLS: Tuple[str, ...] = (
    TEMPLATE_COLS.machine,
    TEMPLATE_COLS.eu_product,
)

# Allowed allocation sums are 1 +/- this tolerance before a warning is printed.
ALLOCATION_SUM_TOLERANCE = 1e-6

# Table kinds understood by the loaders.
TABLE_KINDS: Set[str] = {"allocation", "efficiency", "iea", "exemplars"}

# Separators accepted between exemplar codes in a flat file cell.
EXEMPLAR_SEPARATORS: Tuple[str, ...] = (";", ",", "|")


def allocation_quantity(n: int) -> str:
    return f"{ALLOCATION_QUANTITY_PREFIX}{n}{ALLOCATION_QUANTITY_SUFFIX}"


def is_allocation_quantity(label: object) -> bool:
    if not isinstance(label, str):
        return False
    key = label.strip()
    return key.startswith(ALLOCATION_QUANTITY_PREFIX) and key.endswith(ALLOCATION_QUANTITY_SUFFIX)


def is_non_energy(flow_aggregation_point: object) -> bool:
    return str(flow_aggregation_point).strip() in NON_ENERGY_FLOW_AGGREGATION_POINTS
