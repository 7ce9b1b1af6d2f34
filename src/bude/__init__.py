"""Networking BudE slot administration service."""
