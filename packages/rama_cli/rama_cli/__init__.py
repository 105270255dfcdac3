"""Command line interface for Rama clusters."""
