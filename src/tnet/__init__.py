"""
tnet — workspace file & metadata synchronization engine.

Keeps a note workspace's files, its keyword index and its persisted
open-files session consistent across create, write, delete and rename.
"""

__version__ = "0.3.0"
