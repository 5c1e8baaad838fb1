"""Data models for stockledger."""

from stockledger.models.position import Position
from stockledger.models.summary import Report, Summary

__all__ = [
    "Position",
    "Report",
    "Summary",
]
