"""
Records, reports and Parquet persistence for benchmark results.
"""
