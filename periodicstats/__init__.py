"""
periodicstats computes spatial statistics of particle
configurations in periodic (or partially periodic) 2D and
3D simulation boxes, such as Gaussian smeared densities
and Debye structure factors.

The shared machinery lives in :mod:`periodicstats.box`
(minimum-image geometry), :mod:`periodicstats.locality`
(cell lists) and :mod:`periodicstats.parallel`
(thread-local accumulation and reduction).

"""
import importlib
import warnings
from .Configuration import Configuration


# Create setters for config and create config object

def warn(action):
    """Set warnings filter"""
    warnings.simplefilter(action)
    return action


def threads(n):
    """Configure the number of numba worker threads"""
    if n is not None:
        import numba
        if type(n) is not int or n < 1:
            raise ValueError("Number of threads must be a positive integer")
        if n > numba.config.NUMBA_NUM_THREADS:
            raise ValueError("Number of threads cannot exceed "
                             f"{numba.config.NUMBA_NUM_THREADS}")
        numba.set_num_threads(n)
    return n


config = Configuration({warn: "default", threads: None})


# Setting the __init__.py __getattr__ will lazy load subpackages

def __getattr__(name):
    if name == 'config':
        return config
    elif name.startswith("__"):
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    else:
        return importlib.import_module("."+name, __name__)


# Clean namespace

del threads, warn, Configuration
