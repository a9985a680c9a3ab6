"""Persistence, sync and watch services."""
