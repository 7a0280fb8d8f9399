"""Test suite for the itest harness.

Organized into three categories:

1. core/: Unit tests for the harness core
   - Minimal dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Tests for adapter implementations
   - In-memory registry, configuration stores

3. fakes/: Port implementations for testing

Top-level modules exercise IntegrationTestCase end to end by running
sample suites through unittest.
"""
