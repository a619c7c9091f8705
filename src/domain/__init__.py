"""
Domain layer for the email-to-feed business logic.

This layer contains:
- Data models (type-safe structures)
- Identifier, link and feed envelope derivation
- Entry merge and retention trimming
- The per-message processing pipeline
"""
