"""
Point set bound to a simulation box.

Analyses accept any "system": a :ref:`PointCloud<point_cloud>`,
a ``(box, points)`` pair, or an object exposing ``box``
and ``points`` attributes.

"""

from ..box import Box, check_points


class PointCloud(object):
    """
    .. _point_cloud:

    Read-only pairing of a :ref:`Box<box>` and the
    particle positions inside it.

    Parameters
    ----------
    box : `Box` or box-like
        Simulation box, passed to ``Box.from_box``.
    points : `np.ndarray`, shape `(N, 3)`
        Particle positions in centered box coordinates.
        For 2D boxes, shape `(N, 2)` is also accepted.
    """

    def __init__(self, box, points):
        self._box = Box.from_box(box)
        self._points = check_points(points, self._box)

    @classmethod
    def from_system(cls, system):
        """Coerce a system-like object into a ``PointCloud``"""
        if isinstance(system, cls):
            return system
        if hasattr(system, "box") and hasattr(system, "points"):
            return cls(system.box, system.points)
        try:
            box, points = system
        except (TypeError, ValueError):
            raise ValueError("A system must be a PointCloud, a (box, points) "
                             "pair, or have box and points attributes")
        return cls(box, points)

    @property
    def box(self):
        return self._box

    @property
    def points(self):
        return self._points

    @property
    def n_points(self):
        return self._points.shape[0]

    def __len__(self):
        return self.n_points

    def __getitem__(self, idx):
        return self._points[idx]
