"""
Shared Kernel Module
====================

Generic infrastructure used by the incidents bounded context and the
application entry point: logging, metrics, HTTP middleware.

DO NOT add reconciliation logic to the shared kernel.
"""

__version__ = "1.0.0"
