"""
rental_access.auth

Authentication/authorization package.

Responsibilities:
- Role hierarchy and capability predicates.
- Bearer token verification and role resolution (with an LRU role cache).
- FastAPI gate dependencies: authentication, roles, ownership, specialized guards.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing here imports the API layer; gates only depend on `request.app.state`.
