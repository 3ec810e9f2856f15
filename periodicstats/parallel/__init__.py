"""
Shared-nothing parallel accumulation with an explicit reduction.
"""

from .thread_storage import ThreadStorage, partition
