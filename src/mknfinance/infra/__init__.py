"""Infrastructure layer: database plumbing and repository implementations."""
