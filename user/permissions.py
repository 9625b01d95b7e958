from rest_framework.permissions import BasePermission


def identity_claim(user):
    """The identity claim carried by our access tokens, rebuilt from the user record."""
    if user is None or not getattr(user, 'is_authenticated', False):
        return None
    return {'email': user.email, 'role': user.role, 'is_banned': user.is_banned}


def has_role(claim, *required):
    """True when ``claim`` holds one of the ``required`` roles."""
    if not claim:
        return False
    return claim.get('role') in required


class HasRole(BasePermission):
    required_roles = ()

    def has_permission(self, request, view):
        return has_role(identity_claim(request.user), *self.required_roles)


class IsAdmin(HasRole):
    required_roles = ('admin',)


class IsInstructor(HasRole):
    required_roles = ('instructor',)


class IsActiveMember(BasePermission):
    """Authenticated and not banned."""
    message = 'Your account has been banned.'

    def has_permission(self, request, view):
        claim = identity_claim(request.user)
        return bool(claim and not claim['is_banned'])
