"""Pulse command line interface."""
