"""
External collaborators - notification delivery and the banking data aggregator.
"""
