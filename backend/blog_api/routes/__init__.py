# Routes package init
"""
Blog API Backend - API Routes Package
======================================

Route Inventory:
    - auth.py:    POST /api/auth/signup, POST /api/auth/signin
    - blogs.py:   GET/POST /api/blogs, GET /api/blogs/user/my-blogs,
                  GET/PATCH/DELETE /api/blogs/{blog_id}
    - health.py:  GET /health, GET /

Routes stay thin: extract request data, call a service, wrap the result in
the response envelope. Business rules live in services/.
"""
