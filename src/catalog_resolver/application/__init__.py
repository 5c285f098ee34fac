"""Application layer: resolver, services and catalog queries."""
