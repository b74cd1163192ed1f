"""Shared platform users, platform privileges and JWT authentication.

Tables of this app live in the ``platform`` database, which is shared
with the other platform services (see ``core.db_routers``).
"""
