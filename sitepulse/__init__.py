"""
SitePulse - tiered telemetry aggregation, query routing and threshold alerting.
"""

__version__ = "1.0.0"
