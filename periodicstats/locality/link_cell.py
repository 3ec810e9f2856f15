"""
Cell list (link-cell) spatial index for periodic boxes.

Each box dimension is split into an integer number of cells
no narrower than a nominal ``cell_width``. A particle at
:math:`x` lands in cell

.. math::

    i = \\lfloor (x + L/2) / w \\rfloor \\bmod N_x,

with :math:`w = L / N_x` the actual cell width, and likewise for
:math:`y` and :math:`z`. Cell coordinates :math:`(i, j, k)` are
flattened row-major, :math:`(i N_y + j) N_z + k`. A 2D box gets an
:math:`N_x \\times N_y \\times 1` grid and neighbors only in the plane.

Membership is stored as linked chains in a single integer
array of size :math:`N + C`: entry ``n`` for ``n < N`` is the
next particle in the same cell as particle ``n``, and entry
``N + c`` is the first particle of cell ``c``. Chains end at
``LINK_CELL_TERMINATOR``.

"""

import numpy as np
import numba as nb

from ..box import Box, check_points
from ..box.periodic_box import _wrap_component


LINK_CELL_TERMINATOR = -1


class IteratorLinkCell(object):
    """
    Restartable iterable over the particles of one cell.

    Every call to ``iter`` walks the chain from the cell
    head again, and iteration stops with ``StopIteration``
    at the terminator.
    """

    def __init__(self, cell_list, n_points, cell):
        self._cell_list = cell_list
        self._n_points = n_points
        self._cell = cell

    def __iter__(self):
        idx = self._cell_list[self._n_points + self._cell]
        while idx != LINK_CELL_TERMINATOR:
            yield int(idx)
            idx = self._cell_list[idx]


class LinkCell(object):
    """
    .. _link_cell:

    Partition particles into a regular grid of cells.

    Parameters
    ----------
    box : `Box` or box-like
        Simulation box, passed to ``Box.from_box``.
    cell_width : `float`
        Minimum width of a cell, usually the cutoff
        distance of the neighbor search.

    Examples
    --------
    >>> lc = LinkCell(Box.cube(10), 2.5).compute_cell_list(points)
    >>> for cell in range(lc.num_cells):
    ...     for i in lc.itercell(cell):
    ...         for neighbor in lc.get_cell_neighbors(cell):
    ...             ...
    """

    def __init__(self, box, cell_width):
        self._box = Box.from_box(box)
        if not cell_width > 0:
            raise ValueError("LinkCell requires a positive cell width")
        self._cell_width = float(cell_width)

        L = self._box.L
        dims = np.ones(3, dtype=np.int64)
        for ax in range(self._box.dimensions):
            dims[ax] = max(1, int(np.floor(L[ax] / self._cell_width)))
        widths = np.zeros(3)
        widths[:self._box.dimensions] = L[:self._box.dimensions] \
            / dims[:self._box.dimensions]

        dims.setflags(write=False)
        widths.setflags(write=False)
        self._dims = dims
        self._widths = widths

        # Depends only on geometry, so it is built once
        self._nb_offsets, self._neighbors = _cell_neighbors(
            self._dims, self._box.periodic, self._box.is2D)

        self._points = None
        self._cell_list = None

    @property
    def box(self):
        return self._box

    @property
    def cell_width(self):
        """Nominal minimum cell width"""
        return self._cell_width

    @property
    def cell_widths(self):
        """Actual cell widths along each axis (0 along z in 2D)"""
        return self._widths

    @property
    def cell_dims(self):
        """Number of cells along each axis"""
        return tuple(int(d) for d in self._dims)

    @property
    def num_cells(self):
        return int(np.prod(self._dims))

    @property
    def points(self):
        """Points of the last ``compute_cell_list`` call"""
        self._check_populated()
        return self._points

    @property
    def cell_list(self):
        """Raw link array of size ``N + num_cells``"""
        self._check_populated()
        return self._cell_list

    def get_cell(self, point):
        """Flat index of the cell containing ``point``"""
        point = check_points(point, self._box)[0]
        return int(_cell_index(point, self._box.L, self._dims,
                               self._box.is2D))

    def get_cell_coord(self, point):
        """Cell coordinates :math:`(i, j, k)` of ``point``"""
        cell = self.get_cell(point)
        return tuple(int(c) for c in np.unravel_index(cell, self.cell_dims))

    def get_cell_neighbors(self, cell):
        """
        Sorted indices of the cells that must be searched
        for neighbors of a point in ``cell``, including
        ``cell`` itself and its periodic images.
        """
        self._check_cell(cell)
        begin, end = self._nb_offsets[cell], self._nb_offsets[cell+1]
        return self._neighbors[begin:end].copy()

    def compute_cell_list(self, points):
        """
        Assign every point to a cell.

        Parameters
        ----------
        points : `np.ndarray`, shape `(N, 3)`
            Particle positions inside the box. Along non-periodic
            axes they must lie in :math:`[-L/2, L/2)`; a point at
            :math:`+L/2` or beyond is folded into the cells of the
            opposite face and its pairs are missed.

        Returns
        -------
        self : `LinkCell`
        """
        points = check_points(points, self._box)
        self._cell_list = _compute_cell_list(points, self._box.L,
                                             self._dims, self._box.is2D)
        self._points = points
        return self

    def itercell(self, cell):
        """
        Iterate over the particle indices in ``cell``.

        Returns
        -------
        iterator : `IteratorLinkCell`
            Lazy iterable that may be traversed
            any number of times.
        """
        self._check_populated()
        self._check_cell(cell)
        return IteratorLinkCell(self._cell_list, self._points.shape[0],
                                cell)

    def query_pairs(self, r_max):
        """
        Find all pairs of points closer than ``r_max``
        under the minimum image convention.

        Parameters
        ----------
        r_max : `float`
            Cutoff distance. Must not exceed the
            smallest cell width.

        Returns
        -------
        pairs : `np.ndarray`, shape `(npairs, 2)`
            Unique index pairs ``(i, j)`` with ``i < j``,
            sorted lexicographically.
        """
        self._check_populated()
        if not r_max > 0:
            raise ValueError("r_max must be positive")
        dim = self._box.dimensions
        if r_max > self._widths[:dim].min():
            raise ValueError(f"r_max = {r_max} exceeds the smallest "
                             f"cell width {self._widths[:dim].min()}")

        args = (self._points, self._cell_list, self._nb_offsets,
                self._neighbors, self._box.L, self._box.periodic,
                dim, r_max*r_max)
        counts = _count_pairs(*args)
        starts = np.zeros(counts.size+1, dtype=np.int64)
        np.cumsum(counts, out=starts[1:])
        pairs = _fill_pairs(*args, starts)
        order = np.lexsort((pairs[:, 1], pairs[:, 0]))
        return pairs[order]

    def _check_populated(self):
        if self._cell_list is None:
            raise RuntimeError("Cell list has not been computed. "
                               "Call compute_cell_list first.")

    def _check_cell(self, cell):
        if not 0 <= cell < self.num_cells:
            raise IndexError(f"Cell {cell} out of range "
                             f"for {self.num_cells} cells")


@nb.njit(cache=True)
def _cell_index(point, L, dims, is2D):
    '''Flat cell index of a point'''
    cell = 0
    for ax in range(3):
        c = 0
        if not (is2D and ax == 2):
            alpha = (point[ax] + L[ax]/2) / L[ax]
            c = int(np.floor(alpha*dims[ax])) % dims[ax]
        cell = cell*dims[ax] + c
    return cell


@nb.njit(cache=True)
def _compute_cell_list(points, L, dims, is2D):
    '''Build the linked chains of particles in each cell'''
    n = points.shape[0]
    ncells = dims[0]*dims[1]*dims[2]
    cell_list = np.full(n + ncells, LINK_CELL_TERMINATOR, dtype=np.int64)
    for idx in range(n):
        cell = _cell_index(points[idx], L, dims, is2D)
        # Prepend to the chain of this cell
        cell_list[idx] = cell_list[n + cell]
        cell_list[n + cell] = idx
    return cell_list


@nb.njit(cache=True)
def _cell_neighbors(dims, periodic, is2D):
    '''Neighbor table in compressed sparse row format'''
    nx, ny, nz = dims[0], dims[1], dims[2]
    ncells = nx*ny*nz
    reach_z = 0 if is2D else 1
    offsets = np.zeros(ncells + 1, dtype=np.int64)
    buff = np.empty(ncells*27, dtype=np.int64)
    stencil = np.empty(27, dtype=np.int64)
    count = 0
    for i in range(nx):
        for j in range(ny):
            for k in range(nz):
                n = 0
                for di in range(-1, 2):
                    ni = i + di
                    if periodic[0]:
                        ni = ni % nx
                    elif ni < 0 or ni >= nx:
                        continue
                    for dj in range(-1, 2):
                        nj = j + dj
                        if periodic[1]:
                            nj = nj % ny
                        elif nj < 0 or nj >= ny:
                            continue
                        for dk in range(-reach_z, reach_z + 1):
                            nk = k + dk
                            if periodic[2]:
                                nk = nk % nz
                            elif nk < 0 or nk >= nz:
                                continue
                            stencil[n] = (ni*ny + nj)*nz + nk
                            n += 1
                unique = np.unique(stencil[:n])
                buff[count:count + unique.size] = unique
                count += unique.size
                offsets[(i*ny + j)*nz + k + 1] = count
    return offsets, buff[:count].copy()


@nb.njit(cache=True)
def _scan_cell(cell, points, cell_list, nb_offsets, neighbors, L, periodic,
               ndim, r_max_sq, out, start, fill):
    '''Count (and optionally store) the pairs i < j owned by a cell'''
    n = points.shape[0]
    count = 0
    i = cell_list[n + cell]
    while i != LINK_CELL_TERMINATOR:
        for m in range(nb_offsets[cell], nb_offsets[cell+1]):
            j = cell_list[n + neighbors[m]]
            while j != LINK_CELL_TERMINATOR:
                if i < j:
                    r_sq = 0.0
                    for ax in range(ndim):
                        d = _wrap_component(points[j, ax] - points[i, ax],
                                            L[ax], periodic[ax])
                        r_sq += d*d
                    if r_sq < r_max_sq:
                        if fill:
                            out[start + count, 0] = i
                            out[start + count, 1] = j
                        count += 1
                j = cell_list[j]
        i = cell_list[i]
    return count


@nb.njit(parallel=True, cache=True)
def _count_pairs(points, cell_list, nb_offsets, neighbors, L, periodic,
                 ndim, r_max_sq):
    '''Number of pairs owned by each cell'''
    ncells = nb_offsets.size - 1
    counts = np.zeros(ncells, dtype=np.int64)
    dummy = np.zeros((0, 2), dtype=np.int64)
    for cell in nb.prange(ncells):
        counts[cell] = _scan_cell(cell, points, cell_list, nb_offsets,
                                  neighbors, L, periodic, ndim, r_max_sq,
                                  dummy, 0, False)
    return counts


@nb.njit(parallel=True, cache=True)
def _fill_pairs(points, cell_list, nb_offsets, neighbors, L, periodic,
                ndim, r_max_sq, starts):
    '''Write each cell's pairs into its own slice of the output'''
    ncells = nb_offsets.size - 1
    pairs = np.empty((starts[-1], 2), dtype=np.int64)
    for cell in nb.prange(ncells):
        _scan_cell(cell, points, cell_list, nb_offsets, neighbors, L,
                   periodic, ndim, r_max_sq, pairs, starts[cell], True)
    return pairs
