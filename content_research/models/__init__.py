"""
Domain models shared by the engine, the API and scripts.
"""

from content_research.models.availability import (
    AvailabilityOffer,
    AvailabilitySet,
    BookAvailability,
    LinkCandidate,
    OfferKind,
    RegionalAvailability,
)
from content_research.models.outcomes import Failure, ProviderOutcome, Success
from content_research.models.records import BookRecord, MovieRecord, MusicRecord, SeriesRecord, to_json_dict
from content_research.models.requests import (
    BookRequest,
    MovieRequest,
    MusicRequest,
    ResearchRequest,
    SeriesRequest,
)

__all__ = [
    "AvailabilityOffer",
    "AvailabilitySet",
    "BookAvailability",
    "BookRecord",
    "BookRequest",
    "Failure",
    "LinkCandidate",
    "MovieRecord",
    "MovieRequest",
    "MusicRecord",
    "MusicRequest",
    "OfferKind",
    "ProviderOutcome",
    "RegionalAvailability",
    "ResearchRequest",
    "SeriesRecord",
    "SeriesRequest",
    "Success",
    "to_json_dict",
]
