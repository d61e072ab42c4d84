"""Tiered read-through cache for exchange rates."""

from ratecache.chain import ChainResolver, ResolverStats, build_default_chain
from ratecache.models import ExchangeRateList

__all__ = ["ChainResolver", "ExchangeRateList", "ResolverStats", "build_default_chain"]
