"""Command orchestration services."""
