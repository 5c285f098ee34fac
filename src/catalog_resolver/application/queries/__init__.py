"""Catalog query builders for the read-only data sources."""
