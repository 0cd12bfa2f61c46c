"""Pydantic models for wire payloads and API responses."""
