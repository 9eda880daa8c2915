"""CLI commands for FocusBloom."""
