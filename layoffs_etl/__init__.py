"""Layoffs-ETL Package.

This package contains the cleaning pipeline for the layoffs dataset:
- common: Record types shared by every stage
- cleaner: Load, deduplicate, normalize, convert, enrich, filter, validate
  and publish the analysis-ready table
"""

__version__ = "0.1.0"
