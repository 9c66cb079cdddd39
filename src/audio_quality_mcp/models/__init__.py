"""Pydantic models for analysis results, batch output and training responses."""
