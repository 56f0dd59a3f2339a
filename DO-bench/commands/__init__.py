"""
Command runners behind cli.py.
"""
