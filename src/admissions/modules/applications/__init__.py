"""
Applications Module

Lifecycle of admission applications:
1. Students submit one application at a time (at most one pending)
2. Students edit their application while it is still submitted
3. Admins move it through review, record evaluations and may delete it

API Endpoints:
- POST /applications - Submit an application
- GET /applications - List own applications
- GET /applications/{id} - Application with its documents
- PUT /applications/{id} - Edit applicant fields
- /admin/applications/* - Admin list, statistics, status, evaluation, delete
"""
