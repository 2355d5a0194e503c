"""Core services: F1 data, scripts, Yoto uploads, publishing, job status, device deploy."""
from gridcard.core.f1_client import F1Client
from gridcard.core.media import MediaUploader
from gridcard.core.yoto_api import YotoApi

__all__ = ["F1Client", "MediaUploader", "YotoApi"]
