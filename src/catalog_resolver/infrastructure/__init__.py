"""Infrastructure: pagination, logging and diagnostics."""
