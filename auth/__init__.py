"""auth/ -- Authentication and authorization package for StaffDesk.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or employees/.
api/ and employees/ import from auth/, not the other way around.
"""
