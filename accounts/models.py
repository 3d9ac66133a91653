"""
User model for the marketplace API.
Email as USERNAME_FIELD. The platform role decides which principal a user
token can resolve to.
"""
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from common.models import TimeStampedModel

from .choices import Role


class UserManager(BaseUserManager):
    """Custom manager for email-based auth."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Users must have an email address")
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", Role.ADMIN)
        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")
        return self.create_user(email, password, **extra_fields)


class User(AbstractUser, TimeStampedModel):
    """
    Marketplace account with email as primary identifier.

    ``role_changed_at`` is stamped whenever the role changes; user tokens
    issued before it are rejected so the holder must log in again.
    """

    username = models.CharField(max_length=150, blank=True, null=True)
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=255, blank=True, default="")
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.USER,
        verbose_name=_("role"),
    )
    role_changed_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_("role changed at"),
        help_text=_("Tokens issued before this moment are no longer accepted."),
    )
    is_banned = models.BooleanField(default=False, verbose_name=_("is banned"))
    ban_reason = models.TextField(blank=True, default="", verbose_name=_("ban reason"))
    banned_at = models.DateTimeField(null=True, blank=True, verbose_name=_("banned at"))

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return self.email

    def change_role(self, role, *, at=None, save=True):
        """Set a new role and invalidate previously issued user tokens."""
        if role == self.role:
            return False
        self.role = role
        self.role_changed_at = at or timezone.now()
        if save:
            self.save(update_fields=["role", "role_changed_at", "updated_at"])
        return True

    def ban(self, reason):
        self.is_banned = True
        self.ban_reason = reason or ""
        self.banned_at = timezone.now()
        self.save(update_fields=["is_banned", "ban_reason", "banned_at", "updated_at"])

    def unban(self):
        self.is_banned = False
        self.ban_reason = ""
        self.banned_at = None
        self.save(update_fields=["is_banned", "ban_reason", "banned_at", "updated_at"])
