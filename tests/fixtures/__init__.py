"""Shared test fixtures and canned Qase API responses."""
