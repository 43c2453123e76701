"""Location extraction module for extracting a location from search queries."""
from cv_search.location.location_extractor import LocationExtractor, KNOWN_CITIES

__all__ = [
    "LocationExtractor",
    "KNOWN_CITIES",
]
