"""pydantic request/response schemas for the v1 API."""
