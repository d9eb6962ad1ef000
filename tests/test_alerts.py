from datetime import timedelta
from unittest import mock

import pytest
import requests
from django.utils import timezone

from qrgate.apps.access.services.access import validate_access
from qrgate.apps.access.services.rules import ScanRequest
from qrgate.apps.alerts.analyzer import (
    EMPTY_REPLY_MESSAGE,
    AnomalyAnalyzerClient,
    build_alert_context,
    build_fallback_message,
)
from qrgate.apps.alerts.services import dispatch_denial_alert
from qrgate.apps.alerts.tasks import dispatch_anomaly_alert
from qrgate.apps.audit.models import AccessAttempt

pytestmark = pytest.mark.django_db

GENERATE = "qrgate.apps.alerts.tasks.AnomalyAnalyzerClient.generate_alert"


def _response(status=200, payload=None, text=""):
    resp = mock.Mock(spec=requests.Response)
    resp.status_code = status
    resp.text = text
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(response=resp)
    else:
        resp.raise_for_status.return_value = None
    return resp


def _denied_attempt(grant, **fields):
    return AccessAttempt.objects.create(
        grant=grant,
        document_id=grant.document_id,
        granted=False,
        denial_reason="Invalid password",
        **fields,
    )


# ---------------------------
# Analyzer client
# ---------------------------


def test_context_includes_location_only_when_complete():
    assert "latitude" not in build_alert_context("g", "d", ["r"], 1.0, None)
    ctx = build_alert_context("g", "d", ["r"], 1.0, 2.0)
    assert ctx == {
        "grantId": "g",
        "documentId": "d",
        "denialReasons": ["r"],
        "latitude": 1.0,
        "longitude": 2.0,
    }


def test_fallback_message_embeds_reasons():
    message = build_fallback_message(["Invalid password", "QR code has expired"])
    assert message == (
        "Security Alert: Unauthorized access attempt blocked. "
        "Reasons: Invalid password, QR code has expired"
    )


def test_client_posts_prompt_with_timeout():
    client = AnomalyAnalyzerClient(base_url="http://ollama:11434/", model="llama2", timeout=3)
    with mock.patch.object(
        client.session, "post", return_value=_response(payload={"response": " Alert! "})
    ) as post:
        text = client.generate_alert(build_alert_context("g1", "d1", ["Invalid password"]))

    assert text == "Alert!"
    args, kwargs = post.call_args
    assert args[0] == "http://ollama:11434/api/generate"
    assert kwargs["timeout"] == 3
    assert kwargs["json"]["model"] == "llama2"
    assert kwargs["json"]["stream"] is False
    assert "Invalid password" in kwargs["json"]["prompt"]
    assert "Location: Not provided" in kwargs["json"]["prompt"]


def test_client_empty_reply_uses_default_text():
    client = AnomalyAnalyzerClient()
    with mock.patch.object(client.session, "post", return_value=_response(payload={})):
        assert client.generate_alert(build_alert_context("g", "d", ["r"])) == EMPTY_REPLY_MESSAGE


def test_client_http_error_raises_runtime_error():
    client = AnomalyAnalyzerClient()
    with mock.patch.object(client.session, "post", return_value=_response(status=500, text="boom")):
        with pytest.raises(RuntimeError):
            client.generate_alert(build_alert_context("g", "d", ["r"]))


# ---------------------------
# Task
# ---------------------------


def test_task_attaches_analyzer_message(make_grant):
    grant = make_grant()
    attempt = _denied_attempt(grant)

    with mock.patch(GENERATE, return_value="Repeated wrong password from unknown device"):
        result = dispatch_anomaly_alert(
            str(grant.id), str(grant.document_id), ["Invalid password"], attempt_id=str(attempt.id)
        )

    attempt.refresh_from_db()
    assert result == str(attempt.id)
    assert attempt.alert_generated is True
    assert attempt.alert_message == "Repeated wrong password from unknown device"


@pytest.mark.parametrize(
    "error",
    [requests.ConnectionError("refused"), requests.Timeout("slow"), RuntimeError("bad reply")],
)
def test_task_falls_back_when_analyzer_fails(make_grant, error):
    grant = make_grant()
    attempt = _denied_attempt(grant)

    with mock.patch(GENERATE, side_effect=error):
        dispatch_anomaly_alert(str(grant.id), str(grant.document_id), ["Invalid password"])

    attempt.refresh_from_db()
    assert attempt.alert_generated is True
    assert attempt.alert_message == build_fallback_message(["Invalid password"])


def test_task_without_id_targets_most_recent_denied_attempt(make_grant):
    grant = make_grant()
    older = _denied_attempt(grant)
    newer = _denied_attempt(grant)
    AccessAttempt.objects.filter(id=older.id).update(created_at=timezone.now() - timedelta(minutes=5))
    AccessAttempt.objects.create(grant=grant, document_id=grant.document_id, granted=True)

    with mock.patch(GENERATE, return_value="alert"):
        dispatch_anomaly_alert(str(grant.id), str(grant.document_id), ["Invalid password"])

    older.refresh_from_db()
    newer.refresh_from_db()
    assert newer.alert_generated is True
    assert older.alert_generated is False


def test_task_without_matching_attempt_is_abandoned(make_grant):
    grant = make_grant()
    with mock.patch(GENERATE, return_value="alert"):
        assert dispatch_anomaly_alert(str(grant.id), str(grant.document_id), ["r"]) is None


def test_task_writes_alert_only_once(make_grant):
    grant = make_grant()
    attempt = _denied_attempt(grant, alert_generated=True, alert_message="first")

    with mock.patch(GENERATE, return_value="second"):
        assert dispatch_anomaly_alert(
            str(grant.id), str(grant.document_id), ["r"], attempt_id=str(attempt.id)
        ) is None

    attempt.refresh_from_db()
    assert attempt.alert_message == "first"


# ---------------------------
# Dispatch
# ---------------------------


def test_dispatch_swallows_broker_errors():
    with mock.patch("qrgate.apps.alerts.services.dispatch_anomaly_alert") as task:
        task.delay.side_effect = ConnectionError("no broker")
        dispatch_denial_alert("g", "d", ["r"])
    task.delay.assert_called_once()


def test_denial_with_analyzer_down_still_ends_with_fallback_alert(make_grant):
    grant = make_grant(password_secret="hunter2")

    with mock.patch(GENERATE, side_effect=requests.ConnectionError("down")):
        verdict = validate_access(ScanRequest(code=grant.code, password="wrong"))

    assert verdict.granted is False
    attempt = AccessAttempt.objects.get()
    assert attempt.alert_generated is True
    assert attempt.alert_message == build_fallback_message(["Invalid password"])


def test_task_failure_never_reaches_caller(make_grant):
    grant = make_grant(password_secret="hunter2")

    with mock.patch(
        "qrgate.apps.alerts.tasks.attach_alert", side_effect=RuntimeError("db gone")
    ), mock.patch(GENERATE, return_value="alert"):
        verdict = validate_access(ScanRequest(code=grant.code))

    assert verdict.reasons == ["Password required but not provided"]
