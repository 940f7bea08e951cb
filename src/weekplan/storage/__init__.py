"""Record storage adapters."""
