"""
Validator Tools
===============

Command-line tools built on the shared chain client.

Services:
- heartbeat: validator signing history for a window of blocks
"""

__all__ = [
    "heartbeat",
]
