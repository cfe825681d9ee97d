"""
Housekeeper - Generational retention for dated artifacts.

Decides which volume shadow copies or rotated log files to keep under a
tiered retention policy, removes the rest, and reports capacity usage.
"""

__version__ = "0.2.0"

__all__ = ["__version__"]
