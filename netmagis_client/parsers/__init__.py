"""
Parsers for Netmagis HTML pages and host import files.
"""
