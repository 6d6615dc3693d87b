"""Command line interface for DepExtract."""
