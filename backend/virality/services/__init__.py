"""业务服务"""
from virality.services.store import AnalysisStore, derive_title

__all__ = ["AnalysisStore", "derive_title"]
