"""Schemas — Pydantic models for the embed wire protocol and REST responses."""
