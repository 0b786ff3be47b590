"""Service layer for multi-step workflows."""
