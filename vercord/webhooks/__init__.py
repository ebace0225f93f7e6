"""Inbound Vercel webhook handling."""
