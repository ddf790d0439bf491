"""
LofiTurtle: a terminal music player with a hot-reloadable layout.
"""

__version__ = "0.3.0"
