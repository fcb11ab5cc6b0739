"""
py-mazer: organic maze growth on closed planar curves.
"""

__version__ = "0.1.0"
