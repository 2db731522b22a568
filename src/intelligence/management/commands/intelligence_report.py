"""Print the subscription intelligence report of one user as JSON."""
from __future__ import annotations

import json

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from intelligence.engine import SubscriptionIntelligenceEngine
from intelligence.exceptions import AccountNotFound
from intelligence.types import to_payload


class Command(BaseCommand):
    help = "Generate the subscription intelligence report (and dynamic pricing) for a user."

    def add_arguments(self, parser):
        parser.add_argument("username", help="Username of the account to analyse.")
        parser.add_argument("--pricing", action="store_true", help="Include dynamic pricing.")

    def handle(self, *args, **options):
        User = get_user_model()
        user = User.objects.filter(**{User.USERNAME_FIELD: options["username"]}).first()
        if user is None:
            raise CommandError(f"Unknown user: {options['username']}")

        engine = SubscriptionIntelligenceEngine()
        try:
            payload = {"intelligence": to_payload(engine.generate_intelligence(user.pk))}
            if options["pricing"]:
                payload["dynamic_pricing"] = to_payload(engine.generate_dynamic_pricing(user.pk))
        except AccountNotFound as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(json.dumps(payload, indent=2))
