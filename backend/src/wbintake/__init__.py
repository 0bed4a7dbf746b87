"""
wbintake - Whistleblower Report Intake

Turns voice transcripts, map-click submissions and manual form reports
into canonical, classified case records.
"""

__version__ = "0.1.0"
