"""API Layer — routers, authorization dependencies, error handlers, and middleware."""
