"""
Smeared density fields of particle configurations.
"""

from .gaussian_density import GaussianDensity, gaussian_density
