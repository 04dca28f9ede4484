from .engine import DeliveryEngine

__all__ = ["DeliveryEngine"]
