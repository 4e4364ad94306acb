"""auth/ -- Authentication package for Inkpost.

Layer rule: auth/ imports only stdlib + third-party libraries and core/.
It does NOT import from web/ or blog/.
web/ and blog/ import from auth/, not the other way around.
"""
