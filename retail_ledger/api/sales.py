"""
Sales API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from retail_ledger.api.errors import to_http_error
from retail_ledger.models.base import get_db
from retail_ledger.schemas.sale import SaleCreate, SaleResult
from retail_ledger.services.errors import LedgerError
from retail_ledger.services.sale_service import SaleService

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post("", response_model=SaleResult, status_code=201)
def create_sale(
    request: SaleCreate,
    db: Session = Depends(get_db),
):
    """
    Check out a sale: stock, sale record and ledger entries
    are written together, or nothing is.
    """
    service = SaleService(db)
    try:
        result = service.create_sale(request)
        db.commit()
        return result
    except (ValueError, LedgerError) as e:
        db.rollback()
        raise to_http_error(e)
