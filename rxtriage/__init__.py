"""Rx-Triage: risk scoring for prescription dispensing records."""

__version__ = "1.0.0"
