"""Core domain package for teleglot.

Core contains routing, album aggregation and message correlation without any
Telegram or OpenAI-specific code, keeping the forwarding logic portable.
"""
