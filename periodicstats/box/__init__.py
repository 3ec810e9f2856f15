"""
Periodic box geometry and minimum image distances.
"""

from .periodic_box import Box, check_points
