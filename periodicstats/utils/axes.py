"""
Evenly spaced histogram axes.
"""

import numpy as np


class RegularAxis(object):
    """
    .. _regular_axis:

    ``nbins`` equal-width bins spanning ``[min, max)``.

    Parameters
    ----------
    nbins : `int`
        Number of bins.
    min : `float`
        Left edge of the first bin.
    max : `float`
        Right edge of the last bin.
    """

    def __init__(self, nbins, min, max):
        if not np.issubdtype(type(nbins), np.integer):
            raise ValueError("Axis requires an integer number of bins")
        if nbins < 1:
            raise ValueError("Axis requires a nonzero number of bins")
        if not max > min:
            raise ValueError("Axis requires max to be greater than min")
        self._nbins = int(nbins)
        self._min = float(min)
        self._max = float(max)
        self._dx = (self._max - self._min) / self._nbins

    @property
    def nbins(self):
        return self._nbins

    @property
    def min(self):
        return self._min

    @property
    def max(self):
        return self._max

    @property
    def bin_edges(self):
        """Bin edges, shape `(nbins + 1,)`"""
        edges = self._min + self._dx*np.arange(self._nbins + 1)
        edges[-1] = self._max
        return edges

    @property
    def bin_centers(self):
        """Bin centers, shape `(nbins,)`"""
        return self._min + self._dx*(np.arange(self._nbins) + 0.5)

    def bin(self, value):
        """
        Index of the bin containing ``value``.
        Returns ``-1`` below the axis and ``nbins``
        at or above its right edge.
        """
        if value < self._min:
            return -1
        if value >= self._max:
            return self._nbins
        return min(int(np.floor((value - self._min) / self._dx)),
                   self._nbins - 1)
