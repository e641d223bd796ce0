"""Business logic services."""

from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.services.receipt_service import ReceiptLog
from retail_ledger.services.reconciliation_service import ReconciliationService
from retail_ledger.services.installment_service import InstallmentSplitter
from retail_ledger.services.sale_service import SaleService
from retail_ledger.services.credit_report_service import CreditReportService

__all__ = [
    "LedgerService",
    "ReceiptLog",
    "ReconciliationService",
    "InstallmentSplitter",
    "SaleService",
    "CreditReportService",
]
