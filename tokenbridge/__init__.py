"""
tokenbridge: short-lived OpenAPI tokens and server-side access to a
paginated data service, for browser and backend consumers.
"""

__version__ = "1.0.0"
