"""
Block API client and local block server.
"""
