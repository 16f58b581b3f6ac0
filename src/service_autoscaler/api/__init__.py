"""
Status API for the service autoscaler
"""

from .server import APIServer

__all__ = ["APIServer"]
