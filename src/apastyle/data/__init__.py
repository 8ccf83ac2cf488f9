"""Data loading for observation tables."""

from apastyle.data.loaders import DataFormat, load_table

__all__ = ["DataFormat", "load_table"]
