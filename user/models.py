from django.db import models, transaction
from django.contrib.auth.models import (
    AbstractBaseUser,
    BaseUserManager,
    PermissionsMixin,
)


class UserManager(BaseUserManager):
    """Manager for users."""

    def create_user(self, email, password=None, **extra_fields):
        """Create and return a user with an email and optional password."""
        if not email:
            raise ValueError('User must have an email!')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password):
        """Create, save and return a super user."""
        user = self.create_user(email, password)
        user.is_superuser = True
        user.is_staff = True
        user.role = User.ROLE_ADMIN
        user.save(using=self._db)
        return user


class User(AbstractBaseUser, PermissionsMixin):
    ROLE_STUDENT = 'student'
    ROLE_INSTRUCTOR = 'instructor'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = (
        (ROLE_STUDENT, 'Student'),
        (ROLE_INSTRUCTOR, 'Instructor'),
        (ROLE_ADMIN, 'Admin'),
    )

    email = models.EmailField(max_length=255, unique=True)
    name = models.CharField(max_length=255, blank=True)
    photo_url = models.URLField(blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_STUDENT)
    is_banned = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(auto_now_add=True)

    # Join tables keep both collections duplicate free; order carries no meaning.
    booked_classes = models.ManyToManyField(
        'classes.Class',
        blank=True,
        related_name='booked_by',
    )
    enrolled_classes = models.ManyToManyField(
        'classes.Class',
        blank=True,
        related_name='enrolled_students',
    )

    objects = UserManager()
    USERNAME_FIELD = 'email'

    class Meta:
        ordering = ['role', 'email']

    def __str__(self):
        return self.email

    def booked_class_ids(self):
        return set(self.booked_classes.values_list('pk', flat=True))

    def enrolled_class_ids(self):
        return set(self.enrolled_classes.values_list('pk', flat=True))

    def set_booked_and_enrolled(self, booked, enrolled):
        """Replace both class sets in one transaction."""
        with transaction.atomic():
            self.booked_classes.set(booked)
            self.enrolled_classes.set(enrolled)
