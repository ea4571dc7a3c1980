"""
memberscope Analysis Module
===========================

Pure, deterministic membership analysis.

Components:
- comparator.py: diff/common comparison of two membership lists
- aggregator.py: group access frequency table across many identities

Both operate on already-materialized lists and perform no I/O.
"""

from .comparator import compare, split_memberships
from .aggregator import aggregate, sort_entries
