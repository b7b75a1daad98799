"""
Simulator shell: input parsing, output formatting, the command engine and
the interactive front end.
"""
