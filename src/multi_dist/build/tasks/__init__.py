"""
Invoke tasks for multi-dist.
"""
