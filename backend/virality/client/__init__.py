"""Client library: HTTP client plus cached analysis queries."""
from virality.client.cache import QueryCache
from virality.client.http import ViralityClient
from virality.client.hooks import AnalysisQueries, ANALYSES_KEY, CREDITS_KEY, analysis_key

__all__ = [
    "QueryCache",
    "ViralityClient",
    "AnalysisQueries",
    "ANALYSES_KEY",
    "CREDITS_KEY",
    "analysis_key",
]
