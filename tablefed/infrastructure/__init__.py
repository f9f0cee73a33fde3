"""Infrastructure layer: AWS and in-memory implementations of application ports."""
