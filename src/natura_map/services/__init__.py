"""
Shared service utilities.

- http.py - ``requests`` session factory (timeouts, connection retries)
"""
