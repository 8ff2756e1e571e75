"""Resolve, select, install and remove versions of infrastructure-as-code tools."""

__version__ = "4.0.0"