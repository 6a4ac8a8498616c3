"""
tjcache - cache tiers and filter-state synchronization for the trade journal
"""

__version__ = "0.3.0"
