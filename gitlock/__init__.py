"""Gitlock command-line interface."""
