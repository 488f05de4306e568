"""
HTTP API: POST /analyze plus the /registry routes. See server.create_app().
"""
