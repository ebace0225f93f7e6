"""Utility modules for Vercord."""
