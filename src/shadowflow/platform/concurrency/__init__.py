from .in_flight_guard import InFlightGuard

__all__ = ["InFlightGuard"]
