"""Command-line tooling for balance testing."""
