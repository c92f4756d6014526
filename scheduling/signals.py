# scheduling/signals.py
import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from scheduling.models import TutorProfile, User

logger = logging.getLogger(__name__)


@receiver(post_save, sender=User)
def ensure_tutor_profile(sender, instance, created, **kwargs):
    """
    Every tutor carries a TutorProfile (buffer_minutes lives there).
    Also covers a student promoted to tutor later on.
    """
    if instance.role != User.Roles.TUTOR:
        return
    _, made = TutorProfile.objects.get_or_create(user=instance)
    if made:
        logger.info("tutor profile created for %s", instance.username)
