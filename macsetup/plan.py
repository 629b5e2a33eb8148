from __future__ import annotations
from typing import Iterable, List, Set

from .models import Inventory, Plan, Tool

def dedupe(tools: Iterable[Tool]) -> List[Tool]:
    seen: Set[str] = set()
    out: List[Tool] = []
    for t in tools:
        if t.package in seen:
            continue
        seen.add(t.package)
        out.append(t)
    return out

def reconcile(selected: Iterable[Tool], inventory: Inventory, catalog: Iterable[Tool]) -> Plan:
    """
    Diff the wanted tools against the inventory snapshot.

    Only catalog tools are ever uninstalled. A tool counts as wanted when its
    package identifier was selected, regardless of kind; catalogs never reuse a
    package identifier across kinds (see catalog.validate_catalog).
    """
    wanted = dedupe(selected)
    wanted_pkgs = {t.package for t in wanted}

    to_uninstall = [t for t in dedupe(catalog) if inventory.has(t) and t.package not in wanted_pkgs]
    already = [t for t in wanted if inventory.has(t)]
    to_install = [t for t in wanted if not inventory.has(t)]
    return Plan(to_uninstall=to_uninstall, already_installed=already, to_install=to_install)
