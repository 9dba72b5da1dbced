"""Ports a cache node talks through. Framework-agnostic interfaces."""
from .bus import Bus, Message, Subscription, InMemoryBus
from .clock import Clock, SystemClock
__all__ = ["Bus","Message","Subscription","InMemoryBus",
           "Clock","SystemClock"]
