from .facade import ApiError, BackOfficeApi

__all__ = ["ApiError", "BackOfficeApi"]
