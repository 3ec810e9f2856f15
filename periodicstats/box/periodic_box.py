"""
Geometry of a rectangular simulation box with per-axis
periodic boundary conditions.

Coordinates are centered on the origin, so the box spans
:math:`[-L/2, L/2)` along each axis. Along a periodic axis, a
displacement :math:`d` is mapped to its minimum image

.. math::

    d' = d - L \\lceil d/L - 1/2 \\rceil \\in (-L/2, L/2].

A 2D box has :math:`L_z = 0` and its z axis is pinned:
it is never wrapped and never contributes to distances.

"""

import numpy as np
import numba as nb


class Box(object):
    """
    .. _box:

    An immutable orthorhombic box in 2D or 3D.

    Parameters
    ----------
    Lx : `float`
        Length along x.
    Ly : `float`
        Length along y.
    Lz : `float`, optional
        Length along z. Ignored (set to 0) for 2D boxes.
    is2D : `bool`, optional
        Whether the box is two dimensional.
        If ``None``, the box is 2D when ``Lz == 0``.
    periodic : `bool` or `list` of `bool`, optional
        Periodicity of the box. Either a single flag
        for all axes or one flag per axis.
    """

    def __init__(self, Lx, Ly, Lz=0, is2D=None, periodic=True):
        is2D = bool(Lz == 0) if is2D is None else bool(is2D)
        L = np.array([Lx, Ly, 0 if is2D else Lz], dtype=np.float64)
        used = L[:2] if is2D else L
        if not np.all(np.isfinite(used)) or np.any(used <= 0):
            raise ValueError(f"Box lengths must be positive, got {used}")

        periodic = np.atleast_1d(np.asarray(periodic, dtype=np.bool_))
        if periodic.size == 1:
            periodic = np.repeat(periodic, 3)
        elif periodic.size == 2 and is2D:
            periodic = np.append(periodic, False)
        if periodic.size != 3:
            raise ValueError("periodic must be a bool or one bool per axis")

        L.setflags(write=False)
        periodic.setflags(write=False)
        self._L = L
        self._periodic = periodic
        self._is2D = is2D

    @classmethod
    def from_box(cls, box, dimensions=None):
        """
        Create a :ref:`Box<box>` from a box-like object.

        Parameters
        ----------
        box : `Box`, `dict`, or `list` of `float`
            An existing ``Box`` (returned unchanged), a dict with
            keys ``Lx``, ``Ly`` and optionally ``Lz``,
            ``dimensions`` and ``periodic``, or a sequence of
            2 or 3 box lengths.
        dimensions : `int`, optional
            Force a 2D or 3D box.

        Returns
        -------
        box : `Box`
        """
        if isinstance(box, Box):
            return box
        if dimensions not in [None, 2, 3]:
            raise ValueError("Dimension of space must be 2 or 3")
        if isinstance(box, dict):
            Lz = box.get("Lz", 0)
            dimensions = box.get("dimensions", dimensions)
            is2D = None if dimensions is None else dimensions == 2
            return cls(box["Lx"], box["Ly"], Lz, is2D=is2D,
                       periodic=box.get("periodic", True))
        lengths = np.asarray(box, dtype=np.float64).ravel()
        if lengths.size == 2:
            if dimensions == 3:
                raise ValueError("A 3D box needs 3 lengths")
            return cls(lengths[0], lengths[1], is2D=True)
        elif lengths.size == 3:
            is2D = None if dimensions is None else dimensions == 2
            return cls(*lengths, is2D=is2D)
        raise ValueError(f"Cannot build a box from {box!r}")

    @classmethod
    def cube(cls, L):
        """Cubic, fully periodic 3D box of side ``L``"""
        return cls(L, L, L, is2D=False)

    @classmethod
    def square(cls, L):
        """Square, fully periodic 2D box of side ``L``"""
        return cls(L, L, is2D=True)

    @property
    def Lx(self):
        return self._L[0]

    @property
    def Ly(self):
        return self._L[1]

    @property
    def Lz(self):
        return self._L[2]

    @property
    def L(self):
        """Box lengths as a read-only array of shape `(3,)`"""
        return self._L

    @property
    def periodic(self):
        """Periodicity flags as a read-only array of shape `(3,)`"""
        return self._periodic

    @property
    def periodic_x(self):
        return bool(self._periodic[0])

    @property
    def periodic_y(self):
        return bool(self._periodic[1])

    @property
    def periodic_z(self):
        return bool(self._periodic[2])

    @property
    def is2D(self):
        return self._is2D

    @property
    def dimensions(self):
        return 2 if self._is2D else 3

    @property
    def volume(self):
        """Volume of the box, or area for a 2D box"""
        return float(np.prod(self._L[:self.dimensions]))

    def wrap(self, vecs):
        """
        Wrap displacements or positions into the box
        using the minimum image convention.

        Non-periodic axes pass through unchanged, as
        does z in a 2D box.

        Parameters
        ----------
        vecs : `np.ndarray`, shape `(3,)` or `(N, 3)`
            Vectors to wrap. A 2D box also takes
            `(2,)` or `(N, 2)` vectors.

        Returns
        -------
        wrapped : `np.ndarray`
            Wrapped copy of ``vecs``, same shape.
        """
        vecs = np.array(vecs, dtype=np.float64)
        out = np.atleast_2d(vecs)
        ncomp = out.shape[-1]
        if ncomp != 3 and not (ncomp == 2 and self._is2D):
            raise ValueError("Vectors must have 3 components, "
                             "or 2 for a 2D box")
        for ax in range(self.dimensions):
            if self._periodic[ax]:
                length = self._L[ax]
                out[:, ax] -= length*np.ceil(out[:, ax]/length - 0.5)
        return out.reshape(vecs.shape)

    def make_fractional(self, vecs):
        """Map absolute positions to fractions of the box in `[0, 1)`"""
        vecs = np.array(vecs, dtype=np.float64)
        out = np.zeros_like(vecs)
        dim = self.dimensions
        out[..., :dim] = (vecs[..., :dim] + self._L[:dim]/2) / self._L[:dim]
        return out

    def make_absolute(self, fractions):
        """Map fractions of the box to absolute positions"""
        fractions = np.array(fractions, dtype=np.float64)
        out = np.zeros_like(fractions)
        dim = self.dimensions
        out[..., :dim] = fractions[..., :dim]*self._L[:dim] - self._L[:dim]/2
        return out

    def compute_distances(self, query_points, points):
        """
        Minimum image distances between paired points,
        ``|points[i] - query_points[i]|``.

        Returns
        -------
        distances : `np.ndarray`, shape `(N,)`
        """
        query_points = check_points(query_points, self)
        points = check_points(points, self)
        if query_points.shape != points.shape:
            raise ValueError("query_points and points must have the same shape")
        delta = self.wrap(points - query_points)
        return np.linalg.norm(delta[:, :self.dimensions], axis=1)

    def compute_all_distances(self, points, query_points):
        """
        Minimum image distances between every
        point and every query point.

        Parameters
        ----------
        points : `np.ndarray`, shape `(N, 3)`
            Reference points.
        query_points : `np.ndarray`, shape `(M, 3)`
            Query points.

        Returns
        -------
        distances : `np.ndarray`, shape `(N, M)`
            ``distances[i, j]`` is the distance from
            ``points[i]`` to ``query_points[j]``.
        """
        points = check_points(points, self)
        query_points = check_points(query_points, self)
        return _all_distances(points, query_points, self._L,
                              self._periodic, self.dimensions)

    def __eq__(self, other):
        if not isinstance(other, Box):
            return NotImplemented
        return (self._is2D == other._is2D
                and np.array_equal(self._L, other._L)
                and np.array_equal(self._periodic, other._periodic))

    def __repr__(self):
        return (f"Box(Lx={self.Lx}, Ly={self.Ly}, Lz={self.Lz}, "
                f"is2D={self._is2D}, periodic={self._periodic.tolist()})")


def check_points(points, box):
    """
    Validate a point set against a box and return it
    as a contiguous float64 array of shape `(N, 3)`.

    2D points of shape `(N, 2)` are accepted for 2D boxes
    and padded with :math:`z = 0`.
    """
    points = np.asarray(points, dtype=np.float64)
    if points.ndim == 1 and points.size in [2, 3]:
        points = points[None, :]
    if points.ndim != 2 or points.shape[1] not in [2, 3]:
        raise ValueError(f"Points must have shape (N, 3), got {points.shape}")
    if points.shape[1] == 2:
        if not box.is2D:
            raise ValueError("2D points require a 2D box")
        points = np.concatenate((points, np.zeros((len(points), 1))), axis=1)
    return np.ascontiguousarray(points)


@nb.njit(cache=True)
def _wrap_component(d, length, periodic):
    '''Minimum image of a single displacement component'''
    if periodic:
        d = d - length*np.ceil(d/length - 0.5)
    return d


@nb.njit(parallel=True, cache=True)
def _all_distances(points, query_points, L, periodic, ndim):
    '''Distance matrix between two point sets'''
    n, m = points.shape[0], query_points.shape[0]
    distances = np.zeros((n, m))
    for i in nb.prange(n):
        for j in range(m):
            r_sq = 0.0
            for ax in range(ndim):
                d = _wrap_component(query_points[j, ax] - points[i, ax],
                                    L[ax], periodic[ax])
                r_sq += d*d
            distances[i, j] = np.sqrt(r_sq)
    return distances
