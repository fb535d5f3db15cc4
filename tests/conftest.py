"""
Shared fixtures: small IEA, allocation and efficiency tables for GHA with
exemplars ZAF, KEN and BEN (all 1971).

GHA needs allocations for Residential use of Primary solid biofuels (100 ktoe)
and Electricity (20 ktoe). ZAF uses 500 ktoe and 200 ktoe for the same flows.
"""
from __future__ import annotations

import pandas as pd
import pytest

from helpers import ELEC, PSB, RES, alloc_row, eta_row, iea_row


@pytest.fixture
def iea_data() -> pd.DataFrame:
    return pd.DataFrame(
        [
            iea_row("GHA", "Supply", "Total primary energy supply", "Production", PSB, 300.0),
            iea_row("GHA", "Consumption", "Other", RES, PSB, 100.0),
            iea_row("GHA", "Consumption", "Other", RES, ELEC, 20.0),
            iea_row("GHA", "Consumption", "Non-energy use", "Non-energy use industry/transformation/energy",
                    "Natural gas", 5.0),
            iea_row("ZAF", "Consumption", "Other", RES, PSB, 500.0),
            iea_row("ZAF", "Consumption", "Other", RES, ELEC, 200.0),
        ]
    )


@pytest.fixture
def full_allocations() -> pd.DataFrame:
    return pd.DataFrame(
        [
            alloc_row("GHA", ELEC, RES, "Lamps", "L", 1, 0.3),
            alloc_row("GHA", ELEC, RES, "Electric heaters", "LTH.20.C", 2, 0.7),
            alloc_row("GHA", PSB, RES, "Wood cookstoves", "MTH.100.C", 1, 1.0),
            alloc_row("ZAF", ELEC, RES, "Lamps", "L", 1, 0.5),
            alloc_row("ZAF", ELEC, RES, "Electric heaters", "LTH.20.C", 2, 0.5),
            alloc_row("ZAF", PSB, RES, "Wood cookstoves", "MTH.100.C", 1, 0.6),
            alloc_row("ZAF", PSB, RES, "Charcoal stoves", "MTH.100.C", 2, 0.4),
            alloc_row("KEN", ELEC, RES, "Lamps", "L", 1, 1.0),
            alloc_row("BEN", PSB, RES, "Wood cookstoves", "MTH.100.C", 1, 0.9),
            alloc_row("BEN", PSB, RES, "Charcoal stoves", "MTH.100.C", 2, 0.1),
        ]
    )


@pytest.fixture
def incomplete_allocations(full_allocations: pd.DataFrame) -> pd.DataFrame:
    drop = (
        (full_allocations["Country"] == "GHA")
        & (full_allocations["Ef.product"] == PSB)
        & (full_allocations["Destination"] == RES)
    )
    return full_allocations[~drop].reset_index(drop=True)


@pytest.fixture
def eta_tables() -> pd.DataFrame:
    return pd.DataFrame(
        [
            eta_row("GHA", "Lamps", "L", "eta.fu", 0.05),
            eta_row("GHA", "Lamps", "L", "phi.u", 0.95),
            eta_row("GHA", "Electric heaters", "LTH.20.C", "eta.fu", 1.0),
            eta_row("GHA", "Electric heaters", "LTH.20.C", "phi.u", 0.07),
            eta_row("ZAF", "Wood cookstoves", "MTH.100.C", "eta.fu", 0.12),
            eta_row("ZAF", "Wood cookstoves", "MTH.100.C", "phi.u", 0.2),
            eta_row("ZAF", "Charcoal stoves", "MTH.100.C", "eta.fu", 0.2),
            eta_row("ZAF", "Charcoal stoves", "MTH.100.C", "phi.u", 0.2),
            eta_row("ZAF", "Lamps", "L", "eta.fu", 0.06),
            eta_row("ZAF", "Lamps", "L", "phi.u", 0.95),
        ]
    )


@pytest.fixture
def exemplar_lists() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Country": ["GHA", "GHA"],
            "Year": [1971, 2000],
            "Exemplars": [["ZAF"], ["ZAF"]],
        }
    )
