"""
Thread-local accumulation buffers and their reduction.

A parallel pass over :math:`N` items is split into static
partitions, one per numba worker. Each partition scatters
into its own zeroed copy of the result buffer, so no two
workers ever write the same memory and no locking is needed.
After the pass, :func:`ThreadStorage.reduce_into` sums the
copies element-wise into the shared output on the calling
thread.

A typical kernel looks like

.. code-block:: python

    @nb.njit(parallel=True)
    def _kernel(local, items):
        nparts = local.shape[0]
        for part in nb.prange(nparts):
            begin, end = partition(items.size, nparts, part)
            for idx in range(begin, end):
                local[part, ...] += ...

"""

import numpy as np
import numba as nb


class ThreadStorage(object):
    """
    .. _thread_storage:

    Per-worker copies of a dense histogram or grid.

    Parameters
    ----------
    shape : `int` or `tuple` of `int`
        Shape of the result buffer.
    n_partitions : `int`, optional
        Number of private copies. Defaults to the
        number of numba worker threads.
    dtype : `np.dtype`, optional
        Buffer data type.
    """

    def __init__(self, shape, n_partitions=None, dtype=np.float64):
        shape = tuple(int(s) for s in np.atleast_1d(shape))
        if len(shape) == 0 or min(shape) < 1:
            raise ValueError(f"Invalid buffer shape {shape}")
        n_partitions = nb.get_num_threads() if n_partitions is None \
            else int(n_partitions)
        if n_partitions < 1:
            raise ValueError("Need at least one partition")
        self._shape = shape
        self._n_partitions = n_partitions
        self._dtype = dtype
        self._data = None

    @property
    def shape(self):
        return self._shape

    @property
    def n_partitions(self):
        return self._n_partitions

    @property
    def partitions(self):
        """
        All private buffers stacked along the first axis,
        shape ``(n_partitions, *shape)``.
        Allocated and zeroed on first access.
        """
        if self._data is None:
            self._data = np.zeros((self._n_partitions,) + self._shape,
                                  dtype=self._dtype)
        return self._data

    def local(self, worker):
        """Private buffer of one worker"""
        if not 0 <= worker < self._n_partitions:
            raise IndexError(f"Worker {worker} out of range")
        return self.partitions[worker]

    def reset(self):
        """Discard all accumulated contributions"""
        self._data = None

    def reduce_into(self, out):
        """
        Sum every worker's buffer into ``out``,
        replacing its previous contents.

        Parameters
        ----------
        out : `np.ndarray`
            Output array of shape ``shape``.

        Returns
        -------
        out : `np.ndarray`
        """
        if out.shape != self._shape:
            raise ValueError(f"Output shape {out.shape} does not "
                             f"match buffer shape {self._shape}")
        if self._data is None:
            out[...] = 0
        else:
            np.sum(self._data, axis=0, out=out)
        return out


@nb.njit(cache=True)
def partition(n_items, n_partitions, part):
    '''Half-open range of items handled by one partition'''
    begin = (n_items*part) // n_partitions
    end = (n_items*(part + 1)) // n_partitions
    return begin, end
