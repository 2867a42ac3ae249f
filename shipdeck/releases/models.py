from django.conf import settings
from django.db import models


class Release(models.Model):
    """A named, workspace-scoped deliverable with a QA state and a deployed flag"""
    QA_PENDING = 'pending'
    QA_IN_REVIEW = 'in-review'
    QA_APPROVED = 'approved'
    QA_REJECTED = 'rejected'

    QA_STATUS_CHOICES = [
        (QA_PENDING, 'Pending'),
        (QA_IN_REVIEW, 'In Review'),
        (QA_APPROVED, 'Approved'),
        (QA_REJECTED, 'Rejected'),
    ]

    # Opaque reference; workspaces live outside this service
    workspace_id = models.CharField(max_length=64, db_index=True)
    name = models.CharField(max_length=200)
    version = models.CharField(max_length=50, blank=True)
    description = models.TextField(blank=True)
    target_date = models.DateField(null=True, blank=True)
    qa_status = models.CharField(max_length=20, choices=QA_STATUS_CHOICES, default=QA_PENDING)
    deployed = models.BooleanField(default=False)
    deployed_at = models.DateTimeField(null=True, blank=True)
    deployed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='deployed_releases')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_releases')
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='updated_releases')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        if self.version:
            return f"{self.name} ({self.version})"
        return self.name

    @property
    def is_approved(self):
        return self.qa_status == self.QA_APPROVED

    class Meta:
        db_table = 'releases'
        ordering = ['id']
