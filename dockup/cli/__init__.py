"""Typer command-line interface for dockup."""
