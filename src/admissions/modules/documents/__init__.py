"""
Documents Module

Custody of uploaded files: each Document row is paired with exactly one blob.

API Endpoints:
- POST /documents/upload - Attach a file to an application
- GET /documents/{application_id} - List an application's documents
- GET /documents/download/{document_id} - Download a document
- DELETE /documents/{document_id} - Detach a document

Background Jobs (via APScheduler):
- sweep_orphan_blobs: Removes unreferenced blobs, reports missing ones
"""
