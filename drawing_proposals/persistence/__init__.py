"""In-process result caching."""

from .analysis_cache import AnalysisCache, CacheStats

__all__ = ["AnalysisCache", "CacheStats"]
