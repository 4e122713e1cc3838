"""Business logic services"""

from backend.app.services.s3_service import S3Service
from backend.app.services.resume_service import ResumeService
from backend.app.services.approval_service import ApprovalService, ApprovalResult, select_initial_stage

__all__ = ['S3Service', 'ResumeService', 'ApprovalService', 'ApprovalResult', 'select_initial_stage']
