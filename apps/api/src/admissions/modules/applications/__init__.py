"""
Applications Module

Handles the enrollment application workflow:
1. Drafts: one per (user, program), updated in place
2. Submission: one submitted application per user, with required fields
   and documents checked before anything is stored
3. Admin review: status changes with verification side effects,
   per-document status, verification and remarks
4. Trash and recovery, with a background purge after 30 days

API Endpoints:
- /submit_application/* - Applicant drafts and submission
- /profile/applications/* - Applicant's own submitted applications
- /admin/* - Review, dashboard stats and trash

Background Jobs (via APScheduler):
- purge_trashed_applications: Runs at startup and every 24 hours
"""

from .admin_router import router as admin_router
from .jobs import register_application_jobs
from .router import profile_router, router

__all__ = ["router", "profile_router", "admin_router", "register_application_jobs"]
