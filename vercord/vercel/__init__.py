"""Vercel REST API helpers."""
