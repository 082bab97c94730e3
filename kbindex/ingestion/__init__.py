"""Data ingestion module for KB Index.

Handles parsing weekly KB workbooks and storing them one week at a time.
"""

from kbindex.ingestion.collector import WeeklyCollector
from kbindex.ingestion.workbook import parse_workbook, write_sample_workbook

__all__ = ["WeeklyCollector", "parse_workbook", "write_sample_workbook"]
