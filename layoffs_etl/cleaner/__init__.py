"""
Cleaner Service

This service turns the raw layoffs table into a deduplicated, standardized,
typed, analysis-ready table.

Key responsibilities:
- Read raw rows from a CSV file or the raw PostgreSQL table
- Deduplicate, normalize, convert dates, fill industries and drop unusable rows
- Validate the clean set (row counts, duplicate check, null audit)
- Publish the clean table atomically, with lookup indexes
"""

__version__ = "0.1.0"
