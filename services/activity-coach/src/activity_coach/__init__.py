"""
Activity Coach Service
Turns free-text health and fitness logs into typed activities plus a coaching reply.
"""

__version__ = "0.1.0"
