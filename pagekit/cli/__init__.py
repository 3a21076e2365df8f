"""Command-line tooling for pagekit."""
