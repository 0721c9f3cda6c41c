"""
Application wiring: lifespan and CORS.
"""
