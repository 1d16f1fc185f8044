"""
CLI tools for the Content Delivery Service.

Available commands:
- python -m cli.local    : Content folder maintenance (init, validate, list, serve)
"""
