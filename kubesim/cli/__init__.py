"""
Command-line tools simulated against the cluster
"""
