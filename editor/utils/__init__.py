"""Input helpers for the editor pipeline."""
