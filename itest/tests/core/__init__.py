"""Unit tests for the harness core."""
