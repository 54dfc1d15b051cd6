"""
Shared helpers: console logging, node rendering and tree visualization.
"""
