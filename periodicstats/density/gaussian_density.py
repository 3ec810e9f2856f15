"""
Gaussian smeared particle densities on a regular grid.

Every particle contributes

.. math::

    \\rho(\\mathbf{x}) \\mathrel{+}= A \\exp\\left(-\\frac{|\\mathbf{x} -
        \\mathbf{r}_i|^2}{2\\sigma^2}\\right), \\quad
    A = \\frac{1}{\\sqrt{2\\pi\\sigma^2}},

to every grid cell center :math:`\\mathbf{x}` within :math:`r_{max}`,
using minimum image distances. Note that :math:`A` is the 1D
normalization, so the field integrates to :math:`2\\pi\\sigma^2`
per particle in 3D rather than to 1.

"""

import numpy as np
import numba as nb
from time import time

from ..box.periodic_box import _wrap_component
from ..locality import PointCloud
from ..parallel import ThreadStorage, partition


class GaussianDensity(object):
    """
    .. _gaussian_density:

    Compute the Gaussian smeared density of a
    particle configuration on a regular grid.

    Parameters
    ----------
    width : `int` or `tuple` of `int`
        Number of grid cells along each axis. A single
        ``int`` is used for every axis. A 2-tuple leaves
        a single cell along z.
    r_max : `float`
        Distance beyond which the Gaussian is truncated.
    sigma : `float`
        Standard deviation :math:`\\sigma` of the Gaussian.
    """

    def __init__(self, width, r_max, sigma):
        width = np.atleast_1d(width)
        if width.ndim != 1 or width.size not in [1, 2, 3]:
            raise ValueError("width must be an int or a tuple of 2 or 3 ints")
        if not np.issubdtype(width.dtype, np.integer) or np.any(width < 1):
            raise ValueError("GaussianDensity requires positive integer widths")
        if width.size == 1:
            width = np.repeat(width, 3)
        elif width.size == 2:
            width = np.append(width, 1)
        if not r_max > 0:
            raise ValueError("GaussianDensity requires r_max to be positive.")
        if not sigma > 0:
            raise ValueError("GaussianDensity requires sigma to be positive.")
        self._width = tuple(int(w) for w in width)
        self._r_max = float(r_max)
        self._sigma = float(sigma)
        self._box = None
        self._density = None

    @property
    def width(self):
        return self._width

    @property
    def r_max(self):
        return self._r_max

    @property
    def sigma(self):
        return self._sigma

    @property
    def box(self):
        """Box of the last computed frame"""
        self._check_computed()
        return self._box

    @property
    def density(self):
        """
        Read-only density grid of the last computed frame,
        shape ``width`` (a single cell along z for 2D boxes).
        """
        self._check_computed()
        return self._density

    def compute(self, system, bench=False):
        """
        Compute the density of one frame,
        replacing any previous result.

        Parameters
        ----------
        system : `PointCloud` or system-like
            Box and particle positions.
        bench : `bool`, optional
            Print message for time of calculation.

        Returns
        -------
        self : `GaussianDensity`
        """
        system = PointCloud.from_system(system)
        box = system.box

        if bench:
            t0 = time()

        shape = (self._width[0], self._width[1],
                 1 if box.is2D else self._width[2])
        local = ThreadStorage(shape)
        _splat_gaussians(local.partitions, system.points, box.L,
                         box.periodic, box.is2D, self._r_max, self._sigma)

        if bench:
            t1 = time()
            print(f"Gaussian splatting: {t1-t0:.04f} s")

        density = local.reduce_into(np.zeros(shape))
        density.setflags(write=False)
        self._density = density
        self._box = box

        if bench:
            print(f"Reduction over {local.n_partitions} "
                  f"partitions: {time()-t1:.04f} s")

        return self

    def _check_computed(self):
        if self._density is None:
            raise RuntimeError("Density has not been computed. "
                               "Call compute first.")


def gaussian_density(points, boxsize, width, r_max, sigma, bench=False):
    """
    Gaussian smeared density of ``points`` in a periodic box.

    Parameters
    ----------
    points : `np.ndarray`, shape `(N, ndim)`
        Particle positions in centered box coordinates.
    boxsize : `list` of `float`
        The 2 or 3 box lengths.
    width : `int` or `tuple` of `int`
        Number of grid cells along each axis.
    r_max : `float`
        Truncation distance of the Gaussian.
    sigma : `float`
        Standard deviation of the Gaussian.
    bench : `bool`, optional
        Print message for time of calculation.

    Returns
    -------
    density : `np.ndarray`, shape `(Wx, Wy, Wz)`
        The density grid. ``Wz = 1`` in 2D.
    """
    gd = GaussianDensity(width, r_max, sigma)
    return gd.compute((boxsize, points), bench=bench).density


@nb.njit(parallel=True, cache=True)
def _splat_gaussians(local, points, L, periodic, is2D, r_max, sigma):
    '''Add every particle's Gaussian into its partition's grid'''
    nparts = local.shape[0]
    wx, wy, wz = local.shape[1], local.shape[2], local.shape[3]
    n = points.shape[0]
    lx, ly, lz = L[0], L[1], L[2]

    grid_x = lx / wx
    grid_y = ly / wy
    grid_z = 0.0 if is2D else lz / wz

    # Number of bins within r_max
    cut_x = int(r_max / grid_x)
    cut_y = int(r_max / grid_y)
    cut_z = 0 if is2D else int(r_max / grid_z)
    r_max_sq = r_max*r_max
    sigma_sq = sigma*sigma
    A = np.sqrt(1.0 / (2*np.pi*sigma_sq))

    for part in nb.prange(nparts):
        begin, end = partition(n, nparts, part)
        grid = local[part]
        for idx in range(begin, end):
            x, y, z = points[idx, 0], points[idx, 1], points[idx, 2]
            bin_x = int(np.floor((x + lx/2) / grid_x))
            bin_y = int(np.floor((y + ly/2) / grid_y))
            bin_z = 0 if is2D else int(np.floor((z + lz/2) / grid_z))

            for k in range(bin_z - cut_z, bin_z + cut_z + 1):
                if not periodic[2] and (k < 0 or k >= wz):
                    continue
                dz = 0.0
                if not is2D:
                    dz = _wrap_component(grid_z*k + grid_z/2 - z - lz/2,
                                         lz, periodic[2])
                for j in range(bin_y - cut_y, bin_y + cut_y + 1):
                    if not periodic[1] and (j < 0 or j >= wy):
                        continue
                    dy = _wrap_component(grid_y*j + grid_y/2 - y - ly/2,
                                         ly, periodic[1])
                    for i in range(bin_x - cut_x, bin_x + cut_x + 1):
                        if not periodic[0] and (i < 0 or i >= wx):
                            continue
                        dx = _wrap_component(grid_x*i + grid_x/2 - x - lx/2,
                                             lx, periodic[0])
                        r_sq = dx*dx + dy*dy + dz*dz
                        if r_sq < r_max_sq:
                            # Bin -1 is bin wx - 1, and so on
                            grid[i % wx, j % wy, k % wz] += \
                                A*np.exp(-r_sq / (2*sigma_sq))
