"""CLI module for soluna."""
