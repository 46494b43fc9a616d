from adscope.services.ads_service import AdsService, AdView, AdvertiserSummary, FetchResult, PLACEHOLDER_IMAGE

__all__ = ["AdsService", "AdView", "AdvertiserSummary", "FetchResult", "PLACEHOLDER_IMAGE"]
