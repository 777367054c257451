"""Namespace store and backup tests."""
