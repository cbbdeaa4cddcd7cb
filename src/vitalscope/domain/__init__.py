"""
domain - Models, ports and exceptions. No third-party imports.
"""
