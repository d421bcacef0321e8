"""Push channel events."""

from coinwhisperer.events.broadcaster import NEW_TRADE, NEW_TWEET, Broadcaster, Event

__all__ = ["Broadcaster", "Event", "NEW_TRADE", "NEW_TWEET"]
