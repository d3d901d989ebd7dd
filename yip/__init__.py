"""
yip - manage a router's MAC filter from a Telegram chat.
"""

__version__ = "0.1.0"
