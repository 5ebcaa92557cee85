"""Operator tools for index versioning."""
