"""Resolve members and classes by their external keys."""
from rest_framework.exceptions import NotFound

from classes.models import Class
from .models import User


def get_member(email, for_update=False):
    """Return the user with ``email`` or raise ``NotFound``.

    ``for_update`` locks the row and must be used inside ``transaction.atomic``.
    """
    queryset = User.objects.select_for_update() if for_update else User.objects.all()
    try:
        return queryset.get(email=email)
    except User.DoesNotExist:
        raise NotFound(f"User {email} not found.")


def get_class(class_id):
    try:
        return Class.objects.get(pk=class_id)
    except (Class.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Class {class_id} not found.")


def resolve_classes(class_ids):
    """Return ``{id: Class}`` for every id, raising ``NotFound`` naming the missing ones."""
    found = Class.objects.in_bulk(list(class_ids))
    missing = sorted(set(class_ids) - set(found))
    if missing:
        raise NotFound(f"Classes not found: {', '.join(str(pk) for pk in missing)}.")
    return found
