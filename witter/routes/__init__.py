# Routes package init
"""
Witter API — API Routes Package
================================

Route Inventory:
    - account.py:   POST /account/sign-up, /account/log-in
    - profile.py:   /profile/{handle} and its edit and listing routes
    - users.py:     POST /users/{search}, /users/{handle}/follow|unfollow
    - weets.py:     /weets, /weets/feed, /weets/{id} and reactions
    - validate.py:  POST /validate/sign-up, /validate/update-profile/{handle}
    - health.py:    GET /health

Routes stay thin: pull fields from the body, run the auth dependency,
call one service method, wrap the result. Every success responds 201.
"""
