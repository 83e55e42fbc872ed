# Services package init
"""
Witter API — Services Layer
============================

What:  Business logic between routes (HTTP) and the database.

Service Inventory:
    - UserService:        accounts, follows, reactions, listings and feed
    - WeetService:        single-weet create/read/edit/delete
    - ValidationService:  per-field form checks behind the /validate routes
    - token_service:      issue and inspect session tokens (PyJWT)
    - PasswordService:    bcrypt hashing (passlib)
    - enrichment:         date/time, stats, author and viewer annotations
"""
