"""HTTP API for Rx-Triage.

Exposes the scoring pipeline to the review dashboard: upload a dispensing
export, receive the scored records and a batch summary.
"""
