"""Command line interface for trust-then-verify."""
