"""
Utility modules for the rent receipt service
"""
