"""Application shell - configuration and command-line entry point."""
