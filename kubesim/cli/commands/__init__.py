"""
kubectl command implementation
"""
