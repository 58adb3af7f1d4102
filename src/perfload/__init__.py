"""perfload -- load CI performance-test spreadsheets into a relational store."""

__version__ = "0.3.0"
