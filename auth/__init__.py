"""auth/ -- Token lifecycle and authorization policy for CondoDesk.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or maintenance/.
api/ imports from auth/, not the other way around.
"""
