"""
Tests for the ReceiptLog.
"""

import uuid
from datetime import date
from decimal import Decimal

import pytest

from retail_ledger.schemas.ledger import LedgerEntryCreate
from retail_ledger.services.errors import InvalidAmount, NotFound
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.services.receipt_service import ReceiptLog


def make_entry(db_session, person="Maria", value="100.00"):
    return LedgerService(db_session).create_entry(LedgerEntryCreate(
        category="Vendas",
        due_date=date(2024, 5, 1),
        person=person,
        value=Decimal(value),
        payment_method="prazo",
    ))


class TestAppend:

    def test_append_records_receipt(self, db_session):
        entry = make_entry(db_session)
        log = ReceiptLog(db_session)

        receipt = log.append(entry.id, Decimal("25.00"), " PIX ", note="haver")
        db_session.commit()

        assert receipt.id is not None
        assert receipt.transaction_id == entry.id
        assert receipt.amount == Decimal("25.00")
        assert receipt.method == "pix"
        assert receipt.created_at is not None

    def test_append_does_not_move_balance(self, db_session):
        entry = make_entry(db_session)
        ReceiptLog(db_session).append(entry.id, Decimal("25.00"), "pix")
        db_session.commit()

        assert entry.value_due == Decimal("100.00")

    @pytest.mark.parametrize("amount", ["0", "-5.00"])
    def test_non_positive_amount_rejected(self, db_session, amount):
        entry = make_entry(db_session)
        with pytest.raises(InvalidAmount):
            ReceiptLog(db_session).append(entry.id, Decimal(amount), "pix")

    def test_unknown_entry_rejected(self, db_session):
        with pytest.raises(NotFound):
            ReceiptLog(db_session).append(uuid.uuid4(), Decimal("1.00"), "pix")


class TestListing:

    def test_list_for_is_oldest_first(self, db_session):
        entry = make_entry(db_session)
        log = ReceiptLog(db_session)
        first = log.append(entry.id, Decimal("10.00"), "pix")
        second = log.append(entry.id, Decimal("20.00"), "dinheiro")
        db_session.commit()

        assert [r.id for r in log.list_for(entry.id)] == [first.id, second.id]

    def test_total_for(self, db_session):
        entry = make_entry(db_session)
        log = ReceiptLog(db_session)
        log.append(entry.id, Decimal("10.00"), "pix")
        log.append(entry.id, Decimal("20.50"), "dinheiro")
        db_session.commit()

        assert log.total_for(entry.id) == Decimal("30.50")
        assert log.total_for(uuid.uuid4()) == Decimal("0.00")

    def test_query_by_person(self, db_session):
        ana = make_entry(db_session, person="Ana")
        bruno = make_entry(db_session, person="Bruno")
        log = ReceiptLog(db_session)
        log.append(ana.id, Decimal("10.00"), "pix")
        log.append(ana.id, Decimal("5.00"), "pix")
        log.append(bruno.id, Decimal("7.00"), "pix")
        db_session.commit()

        receipts, total = log.query(person="Ana")

        assert total == 2
        assert {r.transaction_id for r in receipts} == {ana.id}

    def test_query_newest_first(self, db_session):
        entry = make_entry(db_session)
        log = ReceiptLog(db_session)
        first = log.append(entry.id, Decimal("10.00"), "pix")
        second = log.append(entry.id, Decimal("20.00"), "pix")
        db_session.commit()

        receipts, _ = log.query(transaction_id=entry.id)

        assert [r.id for r in receipts] == [second.id, first.id]

    def test_get_unknown_receipt_raises(self, db_session):
        with pytest.raises(NotFound):
            ReceiptLog(db_session).get(uuid.uuid4())
