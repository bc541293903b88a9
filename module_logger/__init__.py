"""
Module Activity Logger

Logs environment module activations, skipping repeats of the same user,
package and version inside a debounce window.
"""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main"]
