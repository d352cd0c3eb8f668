"""
VRM Desktop Assistant - an animated character that lives on your desktop
and chats through OpenAI or OpenRouter.
"""

__version__ = "0.1.0"
