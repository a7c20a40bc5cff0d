"""Ledger services: transfers, payments, deposits, profile resolution."""
