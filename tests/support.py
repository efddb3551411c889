"""Shared test constants"""

from datetime import date, datetime, timezone

# Fixed analysis date so windows are reproducible
TODAY = date(2025, 6, 30)
NOW = datetime(2025, 6, 30, 12, 0, tzinfo=timezone.utc)
