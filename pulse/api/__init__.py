"""Pulse HTTP API."""
