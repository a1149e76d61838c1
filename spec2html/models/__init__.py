"""
Data Models
===========

Pydantic models shared across the rendering pipeline.
"""
