"""
infrastructure - Concrete implementations of domain ports.

Contains all vendor-specific code: LangChain, aiosqlite, Pillow.
Depends on domain/ only (implements ports). Never imported by application/.
"""
