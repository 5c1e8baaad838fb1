"""Persistence layer for stockledger."""
