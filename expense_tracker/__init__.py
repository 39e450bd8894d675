"""
Expense Tracker - Source Package

A single-page dashboard for recording income and expenses and
viewing the current month at a glance.

DESIGN PRINCIPLES:
1. The store subscription is the only source of truth for what is shown
2. Validate at the boundary, trust typed models after
3. The monthly summary is derived, never stored
4. Storage and identity backends are swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
