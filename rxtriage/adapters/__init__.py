"""Adapters layer for Rx-Triage.

This module contains input adapters that interface with external data.
Adapters implement Port interfaces defined in the domain layer and handle
data transformation from external formats to domain models.
"""
