"""HTTP surface of the reframe pipeline."""
