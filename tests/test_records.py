"""Tests for realtime/records.py -- document normalization."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from conftest import FakeDoc
from realtime.records import (
    FALLBACK_RAMO,
    FALLBACK_UR,
    BudgetLineItem,
    normalize_document,
    normalize_snapshot,
)


class TestNormalizeDocument:
    def test_canonical_fields(self):
        item = normalize_document("abc", {
            "DESC_RAMO": "Salud", "DESC_UR": "Hospital General",
            "MONTO_APROBADO": 1000, "MONTO_PAGADO": 250,
        })
        assert item == BudgetLineItem("abc", "Salud", "Hospital General", 1000.0, 250.0)

    def test_missing_labels_get_fallbacks(self):
        item = normalize_document("abc", {"MONTO_APROBADO": 1})
        assert item.ramo == FALLBACK_RAMO
        assert item.ur == FALLBACK_UR

    def test_blank_labels_get_fallbacks(self):
        item = normalize_document("abc", {"DESC_RAMO": "   ", "DESC_UR": None})
        assert item.ramo == FALLBACK_RAMO
        assert item.ur == FALLBACK_UR

    def test_missing_amounts_are_zero(self):
        item = normalize_document("abc", {"DESC_RAMO": "X"})
        assert item.aprobado == 0.0
        assert item.pagado == 0.0
        assert item.modificado is None

    def test_string_amounts_are_parsed(self):
        item = normalize_document("abc", {"MONTO_APROBADO": "$1,234.50", "MONTO_PAGADO": "oops"})
        assert item.aprobado == 1234.5
        assert item.pagado == 0.0

    def test_negative_amounts_collapse_to_zero(self):
        item = normalize_document("abc", {"MONTO_APROBADO": -50, "MONTO_PAGADO": -1})
        assert item.aprobado == 0.0
        assert item.pagado == 0.0

    def test_lowercase_aliases(self):
        item = normalize_document("abc", {"desc_ramo": "Energía", "monto_aprobado": 9})
        assert item.ramo == "Energía"
        assert item.aprobado == 9.0

    def test_modified_amount_kept(self):
        item = normalize_document("abc", {"MONTO_MODIFICADO": "120"})
        assert item.modificado == 120.0

    def test_none_document(self):
        item = normalize_document("gone", None)
        assert item.id == "gone"
        assert item.ramo == FALLBACK_RAMO

    def test_to_dict_has_execution_rate(self):
        d = BudgetLineItem("1", "A", "U", 350, 100).to_dict()
        assert d["execution_rate"] == 28.6
        assert d["id"] == "1"


class TestNormalizeSnapshot:
    def test_preserves_order(self):
        docs = [FakeDoc("b", {"DESC_RAMO": "B"}), FakeDoc("a", {"DESC_RAMO": "A"})]
        assert [i.id for i in normalize_snapshot(docs)] == ["b", "a"]

    def test_skips_missing_documents(self):
        docs = [FakeDoc("a", {}), FakeDoc("gone", None, exists=False)]
        assert [i.id for i in normalize_snapshot(docs)] == ["a"]

    def test_empty_snapshot(self):
        assert normalize_snapshot([]) == []
