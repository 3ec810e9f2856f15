"""
Isotropic static structure factor :math:`S(k)` from
the Debye scattering formula

.. math::

    S(k) = \\frac{1}{N} \\sum_{i} \\sum_{j}
        \\frac{\\sin(k r_{ij})}{k r_{ij}},

where :math:`r_{ij}` is the minimum image distance between
point :math:`i` and query point :math:`j`. The result is
averaged over every accumulated frame.

The finite box only supports wavenumbers above
:math:`k_{min} = 2\\pi / r_{max}`, where :math:`r_{max}` is just
below half the smallest box length. The smallest such bound over
all accumulated frames is kept in ``min_valid_k``.

"""

import warnings
import numpy as np
import numba as nb
from time import time

from ..box import check_points
from ..locality import PointCloud
from ..parallel import ThreadStorage, partition
from ..utils import RegularAxis


class StaticStructureFactorDebye(object):
    """
    .. _structure_factor_debye:

    Accumulate the Debye structure factor over
    one or more frames.

    Parameters
    ----------
    bins : `int`
        Number of :math:`k` bins.
    k_max : `float`
        Right edge of the last :math:`k` bin.
    k_min : `float`, optional
        Left edge of the first :math:`k` bin.
    """

    def __init__(self, bins, k_max, k_min=0):
        if not np.issubdtype(type(bins), np.integer):
            raise ValueError("StaticStructureFactorDebye requires an "
                             "integer number of bins.")
        if bins < 1:
            raise ValueError("StaticStructureFactorDebye requires a "
                             "nonzero number of bins.")
        if not k_max > 0:
            raise ValueError("StaticStructureFactorDebye requires "
                             "k_max to be positive.")
        if k_min < 0:
            raise ValueError("StaticStructureFactorDebye requires "
                             "k_min to be non-negative.")
        if k_max <= k_min:
            raise ValueError("StaticStructureFactorDebye requires that "
                             "k_max must be greater than k_min.")
        self._axis = RegularAxis(bins, k_min, k_max)
        self._local = ThreadStorage(self._axis.nbins)
        self.reset()

    def reset(self):
        """Forget every accumulated frame"""
        self._local.reset()
        self._frame_counter = 0
        self._min_valid_k = np.inf
        self._S_k = None
        self._reduce = True

    def accumulate(self, system, query_points=None, N_total=None,
                   bench=False):
        """
        Add the contribution of one frame.

        Parameters
        ----------
        system : `PointCloud` or system-like
            Box and reference points.
        query_points : `np.ndarray`, shape `(M, 3)`, optional
            Query points. Defaults to the reference points.
        N_total : `int`, optional
            Normalization count :math:`N`. Defaults to
            the number of query points.
        bench : `bool`, optional
            Print message for time of calculation.

        Returns
        -------
        self : `StaticStructureFactorDebye`
        """
        system = PointCloud.from_system(system)
        box, points = system.box, system.points
        query_points = points if query_points is None \
            else check_points(query_points, box)
        N_total = len(query_points) if N_total is None else N_total
        if not N_total > 0:
            raise ValueError("N_total must be positive")

        if bench:
            t0 = time()

        # Stay just below half the smallest side length, so
        # that no image sits at exactly half the box
        r_max = np.nextafter(0.5*box.L[:box.dimensions].min(), 0.0)
        self._min_valid_k = min(self._min_valid_k, 2*np.pi / r_max)

        distances = box.compute_all_distances(points, query_points).ravel()

        if bench:
            t1 = time()
            print(f"Computed {distances.size} distances: {t1-t0:.04f} s")

        _accumulate_sinc(self._local.partitions, self._axis.bin_centers,
                         distances, float(N_total))
        self._frame_counter += 1
        self._reduce = True

        if bench:
            print(f"Debye sum over {self._axis.nbins} bins: "
                  f"{time()-t1:.04f} s")

        return self

    def compute(self, system, query_points=None, N_total=None, reset=True,
                bench=False):
        """
        Accumulate one frame, by default after
        discarding all previous frames.
        See :ref:`accumulate<structure_factor_debye>`.
        """
        if reset:
            self.reset()
        return self.accumulate(system, query_points=query_points,
                               N_total=N_total, bench=bench)

    def reduce(self):
        """
        Merge the thread-local histograms into ``S_k``
        and average over the accumulated frames.

        Returns
        -------
        self : `StaticStructureFactorDebye`
        """
        S_k = self._local.reduce_into(np.zeros(self._axis.nbins))
        if self._frame_counter > 1:
            S_k /= self._frame_counter
        S_k.setflags(write=False)
        self._S_k = S_k
        self._reduce = False
        return self

    @property
    def S_k(self):
        """
        Read-only frame averaged structure factor,
        shape `(bins,)`. Zero if no frame was accumulated.
        """
        if self._reduce:
            self.reduce()
        if self._frame_counter > 0 and self.k_min < self._min_valid_k:
            warnings.warn(f"k_min = {self.k_min} is below the smallest "
                          f"valid wavenumber {self._min_valid_k:.6g} for "
                          "the accumulated boxes", RuntimeWarning)
        return self._S_k

    @property
    def min_valid_k(self):
        """
        Smallest :math:`k` supported by every accumulated
        box (``inf`` before the first frame).
        """
        return self._min_valid_k

    @property
    def frame_count(self):
        return self._frame_counter

    @property
    def nbins(self):
        return self._axis.nbins

    @property
    def k_min(self):
        return self._axis.min

    @property
    def k_max(self):
        return self._axis.max

    @property
    def bounds(self):
        return (self._axis.min, self._axis.max)

    @property
    def bin_centers(self):
        return self._axis.bin_centers

    @property
    def bin_edges(self):
        return self._axis.bin_edges


def debye_structure_factor(points, boxsize, bins, k_max, k_min=0,
                           query_points=None, N_total=None, bench=False):
    """
    Debye structure factor :math:`S(k)` of a
    single configuration.

    Parameters
    ----------
    points : `np.ndarray`, shape `(N, ndim)`
        Particle positions in centered box coordinates.
    boxsize : `list` of `float`
        The 2 or 3 box lengths.
    bins : `int`
        Number of :math:`k` bins.
    k_max : `float`
        Maximum wavenumber.
    k_min : `float`, optional
        Minimum wavenumber.
    query_points : `np.ndarray`, optional
        Query points. Defaults to ``points``.
    N_total : `int`, optional
        Normalization count. Defaults to the
        number of query points.
    bench : `bool`, optional
        Print message for time of calculation.

    Returns
    -------
    S_k : `np.ndarray`, shape `(bins,)`
        The structure factor.
    k : `np.ndarray`, shape `(bins,)`
        Centers of the :math:`k` bins.
    """
    sf = StaticStructureFactorDebye(bins, k_max, k_min=k_min)
    sf.compute((boxsize, points), query_points=query_points,
               N_total=N_total, bench=bench)
    return sf.S_k, sf.bin_centers


@nb.njit(cache=True)
def _sinc(x):
    '''Unnormalized sinc, sin(x)/x'''
    if x == 0.0:
        return 1.0
    return np.sin(x) / x


@nb.njit(parallel=True, cache=True)
def _accumulate_sinc(local, k_centers, distances, n_total):
    '''Sum sinc(k r) over all distances, one partition of k bins per worker'''
    nparts = local.shape[0]
    nbins = k_centers.size
    for part in nb.prange(nparts):
        begin, end = partition(nbins, nparts, part)
        for k_index in range(begin, end):
            k = k_centers[k_index]
            S_k = 0.0
            for d in range(distances.size):
                S_k += _sinc(k*distances[d])
            local[part, k_index] += S_k / n_total
