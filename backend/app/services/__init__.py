"""Services Layer — database and identity orchestration behind the API routes.

Invariants:
    - Services take an AsyncSession (and IdentityClient where needed) as arguments
    - Services commit their own writes; routes never call commit for them
"""
