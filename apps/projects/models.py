import uuid

from django.db import models


class Project(models.Model):
    STATUS_CHOICES = [
        ("active", "Active"),
        ("awaiting_payment", "Awaiting Payment"),
        ("completed", "Completed"),
        ("on_hold", "On Hold"),
        ("archived", "Archived"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project_number = models.CharField(max_length=20, unique=True)
    # One project per proposal; a second provisioning attempt fails on this constraint.
    proposal = models.OneToOneField(
        "proposals.Proposal",
        on_delete=models.PROTECT,
        related_name="project",
    )
    inquiry = models.ForeignKey(
        "proposals.Inquiry",
        on_delete=models.PROTECT,
        related_name="projects",
    )
    client = models.ForeignKey(
        "authentication.User",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="client_projects",
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    total_revisions_allowed = models.PositiveIntegerField(default=2)
    revisions_used = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.project_number


class Deliverable(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("in_progress", "In Progress"),
        ("awaiting_approval", "Awaiting Approval"),
        ("approved", "Approved"),
        ("revision_requested", "Revision Requested"),
        ("final_delivered", "Final Delivered"),
    ]

    # Primary key is copied from the accepted proposal's deliverable entry.
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name="deliverables",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    estimated_completion_week = models.PositiveIntegerField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.project.project_number}: {self.name}"
