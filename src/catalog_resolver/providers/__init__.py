"""Catalog page fetch adapters."""
