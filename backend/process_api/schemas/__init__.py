"""Schemas — Pydantic models for the HTTP wire format."""
