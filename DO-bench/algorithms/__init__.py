"""
Sweep drivers for the block benchmark.
"""
