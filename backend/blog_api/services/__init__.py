# Services package init
"""
Blog API Backend - Services Layer
==================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Services receive the request's AsyncSession plus plain values or
       schema objects, apply the rules and return response schemas.

Service Inventory:
    - AuthService: signup, signin, user lookup for token auth
    - PostService: listing, atomic reads, owner-only create/update/delete
    - reading_time: pure reading-time estimate used by PostService
"""
