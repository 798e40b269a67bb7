"""Command line interface for CPEShield."""
