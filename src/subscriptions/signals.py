"""Signals keeping subscription accounts and login activity in sync."""
from __future__ import annotations

from django.conf import settings
from django.contrib.auth.signals import user_logged_in
from django.db.models.signals import post_save
from django.dispatch import receiver

from subscriptions.services import get_or_create_account, record_login


@receiver(post_save, sender=settings.AUTH_USER_MODEL, dispatch_uid="subscriptions_create_account")
def create_subscription_account(sender, instance, created, raw=False, **kwargs):
    if created and not raw:
        get_or_create_account(instance)


@receiver(user_logged_in, dispatch_uid="subscriptions_record_login")
def track_login(sender, request, user, **kwargs):
    record_login(user)
