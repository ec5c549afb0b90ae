"""CLI subcommands for releasekeeper."""
