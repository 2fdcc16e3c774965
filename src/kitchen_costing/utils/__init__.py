"""Utility modules: configuration, constants, validation, CLI."""
