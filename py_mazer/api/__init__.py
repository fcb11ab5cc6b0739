"""
HTTP interface to maze simulations.
"""
