"""Persistence layer: engine, models and repositories."""
