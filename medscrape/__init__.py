"""medscrape — research and content-scraping backend for the clinic admin tools."""

__version__ = "0.3.0"
