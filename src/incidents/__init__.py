"""
Incidents Module
================

Bounded Context for reconciling Alertmanager alert groups with ServiceNow.

Responsibilities:
- Derive a stable group key from an alert group's labels
- Look up incidents carrying that key
- Create an incident when none exists, update the first one otherwise
- Render incident text (summary, description, alert list comment)
"""

__version__ = "1.0.0"
