"""Relay endpoint tests."""
