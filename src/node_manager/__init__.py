"""
Node manager
------------

Lifecycle orchestration of a supervised blockchain node:

    from node_manager import App, run_until_terminated
"""

from .app import App
from .runner import main, run_until_terminated

__all__ = [
    "App",
    "main",
    "run_until_terminated",
]
