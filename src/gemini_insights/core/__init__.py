"""Core domain types, schema contracts and the task catalogue."""
