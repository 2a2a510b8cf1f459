"""
Storm Impact package
====================

This package produces the Storm Impact Report: which weather event types are
most harmful to population health and which have the greatest economic cost,
based on the NOAA Storm Events Database.

- The CLI entry point is in `storm_impact/cli.py`.
- Dataset loading is in `storm_impact/loader.py`.
- Damage scaling (PROPDMGEXP/CROPDMGEXP codes) is in `storm_impact/damage.py`.
- Grouping, summing and ranking is in `storm_impact/aggregate.py`.
- Console tables, charts and the DOCX report are in `storm_impact/report.py`.
"""

__version__ = '0.3.0'
