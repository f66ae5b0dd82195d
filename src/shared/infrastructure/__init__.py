"""
Infrastructure Layer
=====================

Low-level technical concerns:
- Logging setup
- Prometheus metrics
"""
