"""Progress & challenge engine for the privacy improvement journey

Tracks points, levels, streaks, achievements and the 30-day privacy
challenge locally, and mirrors them to a remote store on a best-effort basis.
"""

__version__ = "1.0.0"
