"""directory/ -- Company records: validation, persistence, and seeding.

Layer rule: directory/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or auth/. Ownership is a plain user id here;
resolving who the caller is happens in auth/.
"""
