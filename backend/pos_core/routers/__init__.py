"""
HTTP routers. Thin controllers that delegate to pos_core.services.domain.
"""
