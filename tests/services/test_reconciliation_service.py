"""
Tests for the ReconciliationService.

Tests cover:
- Partial and full receipts (status, value_due, payment_date)
- Overpayment rejection without state change
- Isolation between installments of the same sale
- The credit-sale method staying "prazo"
- The receipt-sum invariant
- Stale version detection
- Bulk receipts, atomic and best effort
"""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import text

from retail_ledger.models.enums import EntryStatus
from retail_ledger.schemas.ledger import LedgerEntryCreate, LedgerEntryUpdate
from retail_ledger.schemas.receipt import BulkReceiptItem
from retail_ledger.services.errors import (
    ConcurrentUpdate,
    EntryNotReceivable,
    InvalidAmount,
    NotFound,
    Overpayment,
)
from retail_ledger.services.installment_service import InstallmentSplitter
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.services.receipt_service import ReceiptLog
from retail_ledger.services.reconciliation_service import ReconciliationService


def make_entry(db_session, value="100.00", method="prazo", **overrides):
    fields = {
        "category": "Vendas",
        "description": "Venda",
        "due_date": date(2024, 6, 1),
        "person": "Maria",
        "value": Decimal(value),
        "payment_method": method,
    }
    fields.update(overrides)
    entry = LedgerService(db_session).create_entry(LedgerEntryCreate(**fields))
    db_session.commit()
    return entry


def assert_receipts_match_balance(db_session, entry):
    total = ReceiptLog(db_session).total_for(entry.id)
    assert total == abs(entry.value) - entry.value_due
    assert Decimal("0") <= entry.value_due <= abs(entry.value)


class TestApplyReceipt:

    def test_partial_receipt_leaves_entry_parcial(self, db_session):
        entry = make_entry(db_session)
        service = ReconciliationService(db_session)

        receipt = service.apply_receipt(entry.id, Decimal("30.00"), "dinheiro")
        db_session.commit()

        assert receipt.amount == Decimal("30.00")
        assert entry.value_due == Decimal("70.00")
        assert entry.status == EntryStatus.PARCIAL
        assert entry.paid is False
        assert entry.payment_date is None
        assert_receipts_match_balance(db_session, entry)

    def test_full_receipt_settles_entry(self, db_session):
        entry = make_entry(db_session)
        service = ReconciliationService(db_session)

        service.apply_receipt(entry.id, Decimal("60.00"), "pix")
        service.apply_receipt(entry.id, Decimal("40.00"), "pix")
        db_session.commit()

        assert entry.value_due == Decimal("0.00")
        assert entry.status == EntryStatus.PAGO
        assert entry.paid is True
        assert entry.payment_date is not None
        assert_receipts_match_balance(db_session, entry)

    def test_receipt_keeps_method_edited_to_prazo(self, db_session):
        entry = make_entry(db_session, method="pix")
        LedgerService(db_session).update_entry(
            entry.id, LedgerEntryUpdate(payment_method="prazo")
        )
        db_session.commit()

        ReconciliationService(db_session).apply_receipt(
            entry.id, Decimal("10.00"), "dinheiro"
        )
        db_session.commit()

        assert entry.payment_method == "prazo"
        assert entry.is_credit_sale is True
        assert entry.value_due == Decimal("90.00")

    def test_overpayment_rejected_and_state_unchanged(self, db_session):
        entry = make_entry(db_session)
        service = ReconciliationService(db_session)
        service.apply_receipt(entry.id, Decimal("40.00"), "pix")
        db_session.commit()

        with pytest.raises(Overpayment) as excinfo:
            service.apply_receipt(entry.id, Decimal("60.01"), "pix")
        db_session.rollback()

        assert excinfo.value.current_due == Decimal("60.00")
        assert entry.value_due == Decimal("60.00")
        assert entry.status == EntryStatus.PARCIAL
        assert len(ReceiptLog(db_session).list_for(entry.id)) == 1

    def test_overpayment_is_not_clamped_on_settled_entry(self, db_session):
        entry = make_entry(db_session, paid=True, method="pix")
        service = ReconciliationService(db_session)

        with pytest.raises(Overpayment):
            service.apply_receipt(entry.id, Decimal("0.01"), "pix")

    @pytest.mark.parametrize("amount", ["0", "-10.00"])
    def test_non_positive_amount_rejected(self, db_session, amount):
        entry = make_entry(db_session)
        service = ReconciliationService(db_session)

        with pytest.raises(InvalidAmount):
            service.apply_receipt(entry.id, Decimal(amount), "pix")

    def test_unknown_entry_rejected(self, db_session):
        service = ReconciliationService(db_session)
        with pytest.raises(NotFound):
            service.apply_receipt(uuid.uuid4(), Decimal("1.00"), "pix")

    def test_cancelled_entry_rejected(self, db_session):
        entry = make_entry(db_session)
        LedgerService(db_session).update_entry(
            entry.id, LedgerEntryUpdate(status=EntryStatus.CANCELADO)
        )
        db_session.commit()

        with pytest.raises(EntryNotReceivable):
            ReconciliationService(db_session).apply_receipt(
                entry.id, Decimal("10.00"), "pix"
            )

    def test_credit_sale_keeps_prazo_method(self, db_session):
        entry = make_entry(db_session, method="prazo")
        ReconciliationService(db_session).apply_receipt(
            entry.id, Decimal("100.00"), "dinheiro"
        )
        db_session.commit()

        assert entry.payment_method == "prazo"
        assert entry.is_credit_sale is True

    def test_non_credit_entry_takes_receipt_method(self, db_session):
        entry = make_entry(db_session, method=None)
        ReconciliationService(db_session).apply_receipt(
            entry.id, Decimal("10.00"), "PIX"
        )
        db_session.commit()

        assert entry.payment_method == "pix"

    def test_legacy_entry_without_value_due(self, db_session):
        entry = make_entry(db_session)
        entry.value_due = None
        db_session.commit()

        ReconciliationService(db_session).apply_receipt(
            entry.id, Decimal("25.00"), "pix"
        )
        db_session.commit()

        assert entry.value_due == Decimal("75.00")
        assert entry.status == EntryStatus.PARCIAL

    def test_stale_version_raises_concurrent_update(self, db_session):
        entry = make_entry(db_session)
        assert entry.value_due == Decimal("100.00")

        # Another writer moves the row on without this session noticing.
        db_session.execute(
            text(
                "UPDATE ledger_entries SET version_id = version_id + 1, "
                "value_due = 90 WHERE id = :id"
            ),
            {"id": entry.id.hex},
        )

        with pytest.raises(ConcurrentUpdate):
            ReconciliationService(db_session).apply_receipt(
                entry.id, Decimal("95.00"), "pix"
            )

        assert ReceiptLog(db_session).list_for(entry.id) == []


class TestInstallmentIsolation:

    def _credit_sale(self, db_session, total="100.00", count=2):
        split = InstallmentSplitter(db_session).split(
            total=Decimal(total),
            installment_count=count,
            payment_method="prazo",
            sale_id=uuid.uuid4(),
            person="Maria",
        )
        db_session.commit()
        return split.entries

    def test_receipt_on_first_installment_leaves_second(self, db_session):
        first, second = self._credit_sale(db_session)

        ReconciliationService(db_session).apply_receipt(
            first.id, Decimal("20.00"), "dinheiro"
        )
        db_session.commit()

        assert first.value_due == Decimal("30.00")
        assert first.status == EntryStatus.PARCIAL
        assert second.value_due == Decimal("50.00")
        assert second.status == EntryStatus.PENDENTE
        assert ReceiptLog(db_session).list_for(second.id) == []

    def test_overpaying_one_installment_does_not_spill(self, db_session):
        first, second = self._credit_sale(db_session)

        with pytest.raises(Overpayment):
            ReconciliationService(db_session).apply_receipt(
                first.id, Decimal("60.00"), "dinheiro"
            )
        db_session.rollback()

        assert first.value_due == Decimal("50.00")
        assert second.value_due == Decimal("50.00")


class TestApplyReceipts:

    def test_atomic_applies_all(self, db_session):
        a = make_entry(db_session)
        b = make_entry(db_session, value="50.00")
        service = ReconciliationService(db_session)

        result = service.apply_receipts([
            BulkReceiptItem(transaction_id=a.id, amount=Decimal("10.00"), method="pix"),
            BulkReceiptItem(transaction_id=b.id, amount=Decimal("50.00"), method="pix"),
        ])
        db_session.commit()

        assert result.atomic is True
        assert len(result.receipts) == 2
        assert a.value_due == Decimal("90.00")
        assert b.status == EntryStatus.PAGO

    def test_atomic_failure_rolls_back_everything(self, db_session):
        a = make_entry(db_session)
        b = make_entry(db_session, value="50.00")
        service = ReconciliationService(db_session)

        with pytest.raises(Overpayment) as excinfo:
            service.apply_receipts([
                BulkReceiptItem(transaction_id=a.id, amount=Decimal("10.00"), method="pix"),
                BulkReceiptItem(transaction_id=b.id, amount=Decimal("80.00"), method="pix"),
            ])
        db_session.rollback()

        assert excinfo.value.item_index == 1
        assert a.value_due == Decimal("100.00")
        assert ReceiptLog(db_session).list_for(a.id) == []

    def test_best_effort_reports_each_item(self, db_session):
        a = make_entry(db_session)
        b = make_entry(db_session, value="50.00")
        service = ReconciliationService(db_session)

        result = service.apply_receipts([
            BulkReceiptItem(transaction_id=a.id, amount=Decimal("10.00"), method="pix"),
            BulkReceiptItem(transaction_id=b.id, amount=Decimal("80.00"), method="pix"),
            BulkReceiptItem(transaction_id=uuid.uuid4(), amount=Decimal("1.00"), method="pix"),
        ], atomic=False)
        db_session.commit()

        assert result.atomic is False
        assert [item.ok for item in result.items] == [True, False, False]
        assert result.items[1].error_code == "overpayment"
        assert result.items[2].error_code == "not_found"
        assert [item.index for item in result.failed] == [1, 2]
        assert [r.amount for r in result.receipts] == [Decimal("10.00")]
        assert a.value_due == Decimal("90.00")
        assert b.value_due == Decimal("50.00")

    def test_empty_items_rejected(self, db_session):
        with pytest.raises(InvalidAmount):
            ReconciliationService(db_session).apply_receipts([])
