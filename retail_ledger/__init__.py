"""Retail Ledger — partial-payment reconciliation engine for a retail back-office."""
