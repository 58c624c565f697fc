"""Reconciliation of local and external university datasets."""
