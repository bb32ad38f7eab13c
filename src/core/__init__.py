"""Core domain package for chatbridge.

Core contains tag parsing, message building, color policies and the relay
fan-out without any Telegram or game-server-specific code, keeping the
relay logic portable.
"""
