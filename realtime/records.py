"""Budget line item records and document normalization.

Documents in the budget collection come from several loaders that did not
agree on field names, so each attribute is looked up under a list of
aliases in priority order.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping

from utils.strings import clean_label, safe_amount

FALLBACK_RAMO = "Otros Ramos"
FALLBACK_UR = "N/A"

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "ramo":       ("DESC_RAMO", "desc_ramo", "RAMO", "ramo"),
    "ur":         ("DESC_UR", "desc_ur", "UR", "ur"),
    "aprobado":   ("MONTO_APROBADO", "monto_aprobado", "aprobado"),
    "pagado":     ("MONTO_PAGADO", "monto_pagado", "pagado"),
    "modificado": ("MONTO_MODIFICADO", "monto_modificado", "modificado"),
}


@dataclass(frozen=True)
class BudgetLineItem:
    """One budget record: approved/paid amounts attributed to a category."""

    id: str
    ramo: str = FALLBACK_RAMO
    ur: str = FALLBACK_UR
    aprobado: float = 0.0
    pagado: float = 0.0
    modificado: float | None = None

    @property
    def execution_rate(self) -> float:
        """Paid as a percentage of approved, one decimal; 0.0 if nothing approved."""
        if self.aprobado <= 0:
            return 0.0
        return round(self.pagado / self.aprobado * 100, 1)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["execution_rate"] = self.execution_rate
        return d


def _lookup(data: Mapping[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def normalize_document(doc_id: str, data: Mapping[str, Any] | None) -> BudgetLineItem:
    """Map one stored document onto a BudgetLineItem.

    Missing or blank category/unit names get the fallback labels; amounts
    that are missing, unparseable or negative become 0.0. The modified
    amount stays ``None`` when the document does not carry one.
    """
    data = data or {}
    modificado = _lookup(data, "modificado")
    return BudgetLineItem(
        id=str(doc_id),
        ramo=clean_label(_lookup(data, "ramo"), FALLBACK_RAMO),
        ur=clean_label(_lookup(data, "ur"), FALLBACK_UR),
        aprobado=safe_amount(_lookup(data, "aprobado")),
        pagado=safe_amount(_lookup(data, "pagado")),
        modificado=safe_amount(modificado) if modificado is not None else None,
    )


def normalize_snapshot(documents: Iterable[Any]) -> list[BudgetLineItem]:
    """Normalize every document of a collection snapshot, in snapshot order.

    Accepts Firestore ``DocumentSnapshot`` objects (``.id`` and
    ``.to_dict()``); documents that no longer exist are skipped.
    """
    items: list[BudgetLineItem] = []
    for doc in documents:
        if getattr(doc, "exists", True) is False:
            continue
        items.append(normalize_document(doc.id, doc.to_dict()))
    return items
