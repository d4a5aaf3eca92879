"""
Pydantic request schemas.
"""
