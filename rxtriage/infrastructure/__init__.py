"""Infrastructure layer for Rx-Triage: settings, logging and report export."""
