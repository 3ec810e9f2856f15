"""
Utility routines, such as regular histogram axes.
"""

from .axes import RegularAxis
