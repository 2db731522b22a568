import json
from io import StringIO

import pytest
from django.core.management import CommandError, call_command


@pytest.mark.django_db
def test_intelligence_report_prints_json(user):
    out = StringIO()

    call_command("intelligence_report", user.username, "--pricing", stdout=out)

    payload = json.loads(out.getvalue())
    assert payload["intelligence"]["user_id"] == user.pk
    assert payload["dynamic_pricing"]["segment"] == "new_user"


@pytest.mark.django_db
def test_intelligence_report_unknown_user():
    with pytest.raises(CommandError):
        call_command("intelligence_report", "nobody")
