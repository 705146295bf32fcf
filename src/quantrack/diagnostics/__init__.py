from .consistency import check_consistency

__all__ = ["check_consistency"]
