"""
Flight search package.

SerpApi Google Flights client with response normalization into a flat,
price-sorted list of FlightQuote.
"""

from services.scout.flights.models import FlightQuote, FlightSearchParams, FlightSearchResult
from services.scout.flights.serpapi import FlightSearchClient

__all__ = ["FlightQuote", "FlightSearchClient", "FlightSearchParams", "FlightSearchResult"]
