"""
PIER package
============

This package contains PIER (Public Incident & Epidemic Reports).

- Dataset loading is in `pier/loader.py`.
- The two report pipelines are in `pier/shootings.py` and `pier/mortality.py`.
- The report-generation driver is in `pier/cli.py`.
"""

__version__ = '0.3.0'
