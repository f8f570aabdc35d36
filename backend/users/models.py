from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Marketplace account; clients and suppliers share the same model."""

    phone = models.CharField(
        max_length=32,
        unique=True,
        null=True,
        blank=True,
        help_text="Optional phone number, e.g. +244 9XX XXX XXX.",
    )

    def __str__(self) -> str:
        return self.username
