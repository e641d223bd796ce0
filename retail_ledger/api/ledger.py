"""
Ledger API endpoints: entries, receipts, and receiving payments.

The API layer is thin. It handles HTTP concerns (status codes,
response formatting) and delegates all business logic to the
services. Every write commits on success and rolls back on
failure.
"""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from retail_ledger.api.errors import to_http_error
from retail_ledger.models.base import get_db
from retail_ledger.models.enums import EntryStatus
from retail_ledger.schemas.ledger import (
    LedgerEntryCreate,
    LedgerEntryUpdate,
    LedgerEntryFilters,
    LedgerEntryResponse,
    LedgerEntryListResponse,
)
from retail_ledger.schemas.receipt import (
    ReceiptCreate,
    ReceiptResponse,
    ReceiptListResponse,
    BulkReceiptRequest,
    BulkReceiptResult,
)
from retail_ledger.services.errors import LedgerError
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.services.receipt_service import ReceiptLog
from retail_ledger.services.reconciliation_service import ReconciliationService

router = APIRouter(tags=["Ledger"])


@router.get("/transactions", response_model=LedgerEntryListResponse)
def list_entries(
    search: str | None = None,
    status: EntryStatus | None = None,
    month: str | None = Query(default=None, pattern=r"^\d{4}-\d{2}$"),
    person: str | None = None,
    category: str | None = None,
    payment_method: str | None = None,
    sale_id: uuid.UUID | None = None,
    due_from: date | None = None,
    due_to: date | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    """List ledger entries, latest due date first."""
    filters = LedgerEntryFilters(
        search=search,
        status=status,
        month=month,
        person=person,
        category=category,
        payment_method=payment_method,
        sale_id=sale_id,
        due_from=due_from,
        due_to=due_to,
        limit=limit,
        offset=offset,
    )
    service = LedgerService(db)
    return LedgerEntryListResponse(
        data=[
            LedgerEntryResponse.model_validate(entry)
            for entry in service.query_entries(filters)
        ],
        total=service.count_entries(filters),
    )


@router.post("/transactions", response_model=LedgerEntryResponse, status_code=201)
def create_entry(
    request: LedgerEntryCreate,
    db: Session = Depends(get_db),
):
    """Create a receivable or payable."""
    service = LedgerService(db)
    try:
        entry = service.create_entry(request)
        db.commit()
        return entry
    except (ValueError, LedgerError) as e:
        db.rollback()
        raise to_http_error(e)


@router.post(
    "/transactions/bulk-receive",
    response_model=BulkReceiptResult,
    status_code=201,
)
def bulk_receive(
    request: BulkReceiptRequest,
    atomic: bool = True,
    db: Session = Depends(get_db),
):
    """
    Receive payments on several entries at once.

    atomic=true (default): all or nothing; a failure names the
    failing item. atomic=false: each item stands alone and the
    response reports what was applied and what was not.
    """
    service = ReconciliationService(db)
    try:
        result = service.apply_receipts(request.items, atomic=atomic)
        db.commit()
        return result
    except (ValueError, LedgerError) as e:
        db.rollback()
        raise to_http_error(e)


@router.get("/transactions/{entry_id}", response_model=LedgerEntryResponse)
def get_entry(
    entry_id: uuid.UUID,
    db: Session = Depends(get_db),
):
    service = LedgerService(db)
    try:
        return service.get_entry(entry_id)
    except ValueError as e:
        raise to_http_error(e)


@router.put("/transactions/{entry_id}", response_model=LedgerEntryResponse)
def update_entry(
    entry_id: uuid.UUID,
    request: LedgerEntryUpdate,
    db: Session = Depends(get_db),
):
    """Edit an entry. Fields left out of the body are not touched."""
    service = LedgerService(db)
    try:
        entry = service.update_entry(entry_id, request)
        db.commit()
        return entry
    except (ValueError, LedgerError) as e:
        db.rollback()
        raise to_http_error(e)


@router.delete("/transactions/{entry_id}", status_code=204)
def delete_entry(
    entry_id: uuid.UUID,
    db: Session = Depends(get_db),
):
    """Delete an entry together with its receipts."""
    service = LedgerService(db)
    try:
        service.delete_entry(entry_id)
        db.commit()
    except (ValueError, LedgerError) as e:
        db.rollback()
        raise to_http_error(e)


@router.post(
    "/transactions/{entry_id}/receive",
    response_model=ReceiptResponse,
    status_code=201,
)
def receive(
    entry_id: uuid.UUID,
    request: ReceiptCreate,
    db: Session = Depends(get_db),
):
    """
    Receive a payment ("haver") on one entry.

    Partial payments leave the entry "parcial"; paying the full
    remaining balance settles it. Paying more than is due is
    rejected with 409.
    """
    service = ReconciliationService(db)
    try:
        receipt = service.apply_receipt(
            entry_id,
            request.amount,
            request.method,
            note=request.note,
            created_by=request.created_by,
        )
        db.commit()
        return receipt
    except (ValueError, LedgerError) as e:
        db.rollback()
        raise to_http_error(e)


@router.get("/receipts", response_model=ReceiptListResponse)
def list_receipts(
    transaction_id: uuid.UUID | None = None,
    person: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    """List receipts for an entry or a counterparty, newest first."""
    if transaction_id is None and not person:
        raise HTTPException(
            status_code=400, detail="Provide transaction_id or person"
        )
    receipts, total = ReceiptLog(db).query(
        transaction_id=transaction_id,
        person=person,
        limit=limit,
        offset=offset,
    )
    return ReceiptListResponse(
        data=[ReceiptResponse.model_validate(r) for r in receipts],
        total=total,
    )


@router.get("/receipts/{receipt_id}", response_model=ReceiptResponse)
def get_receipt(
    receipt_id: uuid.UUID,
    db: Session = Depends(get_db),
):
    try:
        return ReceiptLog(db).get(receipt_id)
    except ValueError as e:
        raise to_http_error(e)
