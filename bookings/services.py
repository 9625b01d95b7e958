import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError

from user.lookup import get_class, get_member

logger = logging.getLogger(__name__)


class AlreadyEnrolled(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'You are already enrolled in this class.'
    default_code = 'already_enrolled'


def toggle_booking(email, class_id):
    """
    Add ``class_id`` to the member's booked classes, or remove it if already there.

    Two concurrent toggles of the same pair are not serialized: the set stays
    duplicate free but one of the two flips may be lost.

    Returns:
        bool: True when the class is booked after the call
    """
    if not email or not class_id:
        raise ValidationError({'detail': 'invalid query syntax'})

    member = get_member(email)
    booked_class = get_class(class_id)

    if member.booked_classes.filter(pk=booked_class.pk).exists():
        member.booked_classes.remove(booked_class)
        logger.info(f"{email} removed booking for class {booked_class.pk}")
        return False

    if member.enrolled_classes.filter(pk=booked_class.pk).exists():
        raise AlreadyEnrolled()

    member.booked_classes.add(booked_class)
    logger.info(f"{email} booked class {booked_class.pk}")
    return True
