"""
Dataset charting service.

Upload a CSV or JSON dataset, pick two columns and render it as a
bar, line, scatter, pie or grouped bar chart.
"""

__version__ = "1.0.0"
