from .service import BatchResult, PushService, TokenOutcome

__all__ = ["BatchResult", "PushService", "TokenOutcome"]
