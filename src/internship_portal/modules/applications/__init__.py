"""
Internship Applications Module

Handles the internship application workflow:
1. Application submission with duplicate detection (one per email)
2. Public ID allocation (INT-<year>-<seq>) from a durable counter
3. Background confirmation/notification emails
4. Admin listing, statistics and status updates

API Endpoints:
- POST /applications - Submit new application
- GET /applications - List applications
- GET /applications/stats - Counts by status
- GET /applications/{application_id} - Application detail
- PATCH /applications/{application_id}/status - Change status

Consistency:
- Counter increment and record insert share one transaction
- Email unique constraint guards concurrent duplicate submissions
- State machine validation for status transitions
"""

from .router import router

__all__ = ["router"]
