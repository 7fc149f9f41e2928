# Services package init
"""
Registrar Backend — Services Layer
====================================

What:  Persistence layer sitting between routes (HTTP) and the database.
How:   The repository accepts and returns Student ORM instances and raises
       kind-tagged exceptions from registrar.exceptions. It is constructed
       once by the application factory and injected into routes through
       FastAPI's dependency system.

Service Inventory:
    - StudentRepository: create, get_by_id, list_all, update, soft_delete
"""
