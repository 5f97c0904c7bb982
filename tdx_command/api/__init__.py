"""Public operation surfaces of the client."""

from .account import AccountAPI
from .commands import CommandAPI, FeedItem
from .options import NO_WAIT, WaitOptions

__all__ = ["NO_WAIT", "AccountAPI", "CommandAPI", "FeedItem", "WaitOptions"]
