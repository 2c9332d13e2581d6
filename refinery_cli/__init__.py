"""Command-line entry points for the idea refinement pipeline."""
