"""Ports and the application state container."""
