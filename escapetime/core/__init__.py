"""Numeric core: complex values, recurrences, skip regions and orbit classification."""
