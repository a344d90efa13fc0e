"""Console harness, run records and item-set generation."""
