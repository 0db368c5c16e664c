# Models:
# 1. User - Custom user model (email login, salesperson/manager role)


from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _



# USER MANAGER (handles user creation)
class UserManager(BaseUserManager):
    """
    Custom user manager for User model

    Provides methods to:
    - Create regular users (salespersons by default)
    - Create superusers (managers with admin access)
    - List active salespersons
    """

    def create_user(self, email, password=None, **extra_fields):
        """
        Create and save a regular user

        Args:
            email (str): User's email address (required)
            password (str): User's password (required)
            **extra_fields: Additional fields (first_name, last_name, role, etc.)

        Returns:
            User: The created user object

        Raises:
            ValueError: If email is not provided

        Example:
            user = User.objects.create_user(
                email='vendedor@empresa.com',
                password='securepass123',
                first_name='Laura',
                last_name='Mora',
                role='salesperson'
            )
        """
        if not email:
            raise ValueError(_('Users must have an email address'))

        email = self.normalize_email(email)

        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)

        user = self.model(email=email, **extra_fields)

        # Set password (hashed)
        user.set_password(password)
        user.save(using=self._db)

        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """
        Create and save a superuser

        Superusers are managers with access to the admin panel
        """
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('role', User.ROLE_MANAGER)

        if extra_fields.get('is_staff') is not True:
            raise ValueError(_('Superuser must have is_staff=True'))
        if extra_fields.get('is_superuser') is not True:
            raise ValueError(_('Superuser must have is_superuser=True'))

        return self.create_user(email, password, **extra_fields)

    def salespersons(self):
        """Active salespersons ordered by name"""
        return self.filter(role=User.ROLE_SALESPERSON, is_active=True).order_by('first_name', 'last_name')



# USER MODEL
class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model for Ventas CRM

    Features:
    - Email-based authentication (no username)
    - Role-based access (salesperson, manager)

    The role drives row-level visibility of activities:
    salespersons only see activities assigned to them, managers see all.
    """

    ROLE_SALESPERSON = 'salesperson'
    ROLE_MANAGER = 'manager'

    ROLE_CHOICES = [
        (ROLE_SALESPERSON, _('Vendedor')),
        (ROLE_MANAGER, _('Gerente')),
    ]

    email = models.EmailField(_('email address'),unique=True,max_length=255,db_index=True,help_text=_('Required. Used for login.'))
    first_name = models.CharField(_('first name'),max_length=50,blank=True)
    last_name = models.CharField(_('last name'),max_length=50,blank=True)

    role = models.CharField(_('role'),max_length=20,choices=ROLE_CHOICES,
                            default=ROLE_SALESPERSON,db_index=True,help_text=_('salesperson (own activities) or manager (all activities)'))

    is_active = models.BooleanField(_('active'), default=True, help_text=_('Unselect this instead of deleting accounts.'))
    is_staff = models.BooleanField(_('staff status'), default=False,help_text=_('Designates whether the user can log into admin site.'))
    date_joined = models.DateTimeField(_('date joined'), default=timezone.now)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'

    # Fields required when creating superuser (in addition to email and password)
    REQUIRED_FIELDS = ['first_name', 'last_name']

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['first_name', 'last_name']
        indexes = [
            models.Index(fields=['role', 'is_active'], name='user_role_active_idx'),
        ]

    def __str__(self):
        """
        Example:
            "Laura Mora (laura@empresa.com)"
        """
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name} ({self.email})"
        return self.email

    # HELPER METHODS
    def get_full_name(self):
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        elif self.first_name:
            return self.first_name
        return self.email

    @property
    def full_name(self):
        return self.get_full_name()

    def get_short_name(self):

        return self.first_name if self.first_name else self.email

    def get_initials(self):
        if self.first_name and self.last_name:
            return f"{self.first_name[0]}{self.last_name[0]}".upper()
        elif self.first_name:
            return self.first_name[0].upper()
        return self.email[0].upper()

    # ROLE CHECKS
    def is_manager(self):

        return self.role == self.ROLE_MANAGER or self.is_superuser

    def is_salesperson(self):

        return self.role == self.ROLE_SALESPERSON and not self.is_superuser

    def to_dict(self):
        """Compact representation used by the JSON endpoints"""
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.get_full_name(),
            'initials': self.get_initials(),
            'role': self.role,
            'role_display': self.get_role_display(),
        }
