"""Upstream time-data providers."""

from soluna.providers.aladhan import UpstreamError, get_methods, get_soluna_data
from soluna.providers.types import CALCULATION_METHODS, QueryParams

__all__ = ["CALCULATION_METHODS", "QueryParams", "UpstreamError", "get_methods", "get_soluna_data"]
