from .redis_cache import GapAnalysisCache, multi_cache_key, pairwise_cache_key

__all__ = ["GapAnalysisCache", "multi_cache_key", "pairwise_cache_key"]
