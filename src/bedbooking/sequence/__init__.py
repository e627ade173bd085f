"""Per-day counters for human-readable booking and invoice numbers."""
