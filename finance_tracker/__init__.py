"""
Finance Tracker - Source Package

A small business finance tracker: revenue/expense transactions,
calendar events and reminders, dashboard summaries and AI-assisted
category suggestions.

DESIGN PRINCIPLES:
1. Records are append-only
2. Aggregations are pure functions of a snapshot
3. Invalid input never reaches the store
4. Reads degrade to empty data, writes report their outcome
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
