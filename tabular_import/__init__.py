"""Bulk tabular import pipeline.

Parses CSV / workbook uploads, validates rows against field and cross-row
rules, resolves references by display name and submits valid rows one at a
time to a record creation endpoint.
"""

__version__ = "0.3.0"
