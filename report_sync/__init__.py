"""Affiliate report sync package.

Pulls sub-affiliate summary reports from the reporting API in window-sized,
paginated chunks and reconciles per-affiliate totals into the database.
"""

__all__: list[str] = []
