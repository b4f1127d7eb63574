"""auth/ -- Authentication and session package for bizdir.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or directory/.
api/ imports from auth/, not the other way around.
"""
