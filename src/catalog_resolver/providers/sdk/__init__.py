"""Generated SDK client adapters."""
