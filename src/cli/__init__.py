"""Command-line interface for the study-material platform client."""
