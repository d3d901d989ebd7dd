"""
Chat-side core: login gate, device name cache, device workflows and the
dispatcher that ties them together.
"""

from yip.bot.auth import CredentialGate
from yip.bot.dispatcher import CommandDispatcher
from yip.bot.name_cache import NameCache
from yip.bot.workflow import DeviceWorkflow

__all__ = [
    "CredentialGate",
    "CommandDispatcher",
    "DeviceWorkflow",
    "NameCache",
]
