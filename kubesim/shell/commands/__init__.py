"""
Tool command modules for the simulator shell
"""
