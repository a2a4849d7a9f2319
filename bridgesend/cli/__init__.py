"""Command line interface for bridgesend."""
