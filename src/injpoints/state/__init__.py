"""State layer.

This package is the single place where tracking events are folded into
the shared analytics documents (session records and device names).
"""
