"""
Point sets and cell list spatial indexing in periodic boxes.
"""

from .point_cloud import PointCloud
from .link_cell import LinkCell, IteratorLinkCell, LINK_CELL_TERMINATOR
