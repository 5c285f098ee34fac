"""Catalog resolution domain: records, filters and outcomes."""
