"""Action validation helpers.

Every controller operation runs through the same pipeline before it touches a
session, so rejected actions never leave partial state behind.
"""
