"""Shared helpers and record types used across the cleaning stages."""

from .records import BUSINESS_FIELDS, CleanRecord, RawRecord, WorkingRecord, is_blank

__all__ = ["BUSINESS_FIELDS", "CleanRecord", "RawRecord", "WorkingRecord", "is_blank"]
