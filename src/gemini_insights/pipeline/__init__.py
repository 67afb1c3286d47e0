"""Pipeline stages: one async handler per step."""
