"""
Bookkeeping API application package.

Authentication and token lifecycle for the bookkeeping backend.
"""
