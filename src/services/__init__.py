"""
Collaborator services for Lambda handler operations.

This package contains reusable functions for email parsing, Atom XML
serialization and S3 interactions.
"""

__all__ = ['atom', 'email', 's3']
