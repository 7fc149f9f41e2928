# Routes package init
"""
Registrar Backend — API Routes Package
========================================

Route Inventory:
    - students.py: POST/GET /students/, GET/PUT/DELETE /students/{id}
    - health.py:   GET /health

Routes handle HTTP concerns only: read the path and body, call the
repository, and pick the status code. Persistence lives in services/.
"""
