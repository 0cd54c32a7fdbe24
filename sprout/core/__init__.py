"""Core scaffolding pipeline."""
