# Schemas package init
"""
Witter API — Pydantic Schemas Package

    - common.py:      error, health and message envelopes
    - user.py:        account/profile request bodies and profile responses
    - weet.py:        weet request bodies and enriched weet responses
    - validation.py:  field-check results for the /validate endpoints
    - token.py:       the claims carried inside a session token
"""
