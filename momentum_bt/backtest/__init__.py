"""Ledger construction, strategy engines and performance metrics."""
