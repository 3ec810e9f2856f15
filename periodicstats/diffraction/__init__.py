"""
Structure factors from pairwise particle distances.
"""

from .structure_factor_debye import (StaticStructureFactorDebye,
                                     debye_structure_factor)
