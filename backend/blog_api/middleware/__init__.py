# Middleware package init
"""
Blog API Backend - Middleware Package
======================================

Middleware Chain (request order):
    Request → [Request ID] → [Logging] → [Auth Rate Limit] → [GZip] → [CORS] → Route

    - Request ID: sets the correlation id used by logs and error bodies
    - Logging: one access line per request with status and duration,
      including 429s produced by the limiter
    - Auth Rate Limit: rejects credential-stuffing bursts on /api/auth/*
      before any database work
"""
