"""
kape-bins: fetches the third-party binaries referenced by KAPE module files.
"""

__version__ = "1.0.0"
