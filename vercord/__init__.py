"""Vercord - Vercel deployment notifications for Discord."""

__version__ = "0.1.0"
