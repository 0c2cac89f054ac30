"""Schema reading, ordering and synthetic data generation."""
