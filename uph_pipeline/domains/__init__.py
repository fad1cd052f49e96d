"""Domain pipelines."""
