"""
HTTP layer for the banking CSV display service.
"""
