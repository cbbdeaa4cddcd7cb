"""
application - Services that drive the scan lifecycle.

Depends on domain/ only. Collaborators are injected by factory.py.
"""
