"""DTOs for application use cases (no dependency on HTTP or AWS types)."""
