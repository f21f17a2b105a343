"""
Command Line Interface for rsync-bridge.

This package provides CLI commands for running transfers against configured
targets, managing the configuration file and checking the environment.
"""

__all__ = []
