"""Provision a pyenv-managed PySpark workspace."""

__version__ = "0.1.0"
