"""
Row builders and labels shared by the test modules.
"""
from __future__ import annotations

from typing import Optional

META = {"Method": "PCM", "Energy.type": "E", "Last.stage": "Final"}
PSB = "Primary solid biofuels"
ELEC = "Electricity"
RES = "Residential"


def iea_row(country: str, ledger: str, fap: str, flow: str, product: str, e_dot: float,
            year: int = 1971, unit: str = "ktoe") -> dict:
    return {
        "Country": country, **META, "Year": year,
        "Ledger.side": ledger, "Flow.aggregation.point": fap,
        "Flow": flow, "Product": product, "Unit": unit, "E.dot": e_dot,
    }


def alloc_row(country: str, product: str, dest: str, machine: str, eu_product: str, n: int,
              value: float, year: int = 1971, unit: str = "ktoe") -> dict:
    return {
        "Country": country, **META, "Year": year,
        "Ef.product": product, "Destination": dest, "Machine": machine,
        "Eu.product": eu_product, "Quantity": f"C_{n} [%]", "Unit": unit, ".values": value,
    }


def eta_row(country: str, machine: str, eu_product: str, quantity: str, value: float,
            year: int = 1971, unit: Optional[str] = None) -> dict:
    return {
        "Country": country, **META, "Year": year,
        "Machine": machine, "Eu.product": eu_product,
        "Quantity": quantity, "Unit": unit, ".values": value,
    }
