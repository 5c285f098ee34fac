"""Catalog pagination."""
