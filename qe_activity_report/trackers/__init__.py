"""Issue tracker client implementations."""
