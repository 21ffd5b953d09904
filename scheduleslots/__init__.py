"""
scheduleslots - Compute open appointment slots from weekly working-hours policies.
"""

__version__ = "0.1.0"
