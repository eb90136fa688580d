from unittest.mock import Mock

import pytest
import requests

from jira_chat_notifier.dispatcher import FAILED, SENT, SKIPPED, Dispatcher, build_message
from jira_chat_notifier.formatter import ChatNotification
from jira_chat_notifier.model import IncomingEvent


def ok_response(status_code=200, reason="OK"):
    return Mock(status_code=status_code, reason=reason)


@pytest.fixture
def session():
    session = Mock(spec=requests.Session)
    session.post.return_value = ok_response()
    return session


@pytest.fixture
def dispatcher(session):
    return Dispatcher(session=session)


@pytest.fixture
def created_event():
    return IncomingEvent(
        webhook_event="jira:issue_created",
        display_name="Alice",
        issue_key="ABC-1",
        issue_summary="Fix bug",
        project_key="ABC",
    )


CREATED = ChatNotification(body="By Alice", verb="created")
UPDATED = ChatNotification(body="Alice changed field status: To Do -> Done", verb="updated")


def test_build_message_payload_shape(created_event):
    message = build_message(created_event, CREATED, "http://t/")

    assert message.model_dump() == {
        "text": "Issue ABC-1 has been created",
        "attachments": [
            {"title": "Fix bug", "title_link": "http://t/ABC-1", "text": "By Alice"},
        ],
    }


def test_build_message_without_ticket_url(created_event):
    message = build_message(created_event, CREATED, "")

    assert message.attachments[0].title_link == "ABC-1"


def test_dispatch_created_event(dispatcher, session, notifier_config, created_event):
    results = dispatcher.dispatch(notifier_config, created_event, CREATED)

    session.post.assert_called_once_with(
        "http://x/hook",
        json={
            "text": "Issue ABC-1 has been created",
            "attachments": [
                {"title": "Fix bug", "title_link": "http://t/ABC-1", "text": "By Alice"},
            ],
        },
        headers={"Content-Type": "application/json"},
        timeout=5.0,
    )
    assert [r.status for r in results] == [SENT]
    assert results[0].status_code == 200


def test_dispatch_unknown_project(dispatcher, session, notifier_config):
    event = IncomingEvent(webhook_event="jira:issue_created", project_key="XYZ", issue_key="XYZ-1")

    assert dispatcher.dispatch(notifier_config, event, CREATED) == []
    session.post.assert_not_called()


def test_dispatch_project_key_case_insensitive(dispatcher, session, notifier_config):
    event = IncomingEvent(webhook_event="jira:issue_created", project_key="abc", issue_key="abc-1")

    dispatcher.dispatch(notifier_config, event, CREATED)

    session.post.assert_called_once()


def test_event_filter_skips_only_that_target(dispatcher, session, notifier_config):
    event = IncomingEvent(webhook_event="jira:issue_updated", project_key="BTS", issue_key="BTS-16")

    results = dispatcher.dispatch(notifier_config, event, UPDATED)

    posted = [call.args[0] for call in session.post.call_args_list]
    assert posted == ["http://chat/all", "http://chat/override"]
    assert [r.status for r in results] == [SENT, SKIPPED, SENT]


def test_event_filter_lets_matching_event_through(dispatcher, session, notifier_config):
    event = IncomingEvent(webhook_event="jira:issue_created", project_key="BTS", issue_key="BTS-16")

    dispatcher.dispatch(notifier_config, event, CREATED)

    assert session.post.call_count == 3


def test_ticket_url_override(dispatcher, session, notifier_config):
    event = IncomingEvent(webhook_event="jira:issue_created", project_key="BTS", issue_key="BTS-16")

    dispatcher.dispatch(notifier_config, event, CREATED)

    links = {
        call.args[0]: call.kwargs["json"]["attachments"][0]["title_link"]
        for call in session.post.call_args_list
    }
    assert links["http://chat/all"] == "http://t/BTS-16"
    assert links["http://chat/override"] == "http://other/browse/BTS-16"


def test_failure_does_not_stop_other_targets(dispatcher, session, notifier_config, caplog):
    event = IncomingEvent(webhook_event="jira:issue_created", project_key="BTS", issue_key="BTS-16")
    session.post.side_effect = [
        requests.ConnectionError("connection refused"),
        ok_response(500, "Internal Server Error"),
        ok_response(204, "No Content"),
    ]

    results = dispatcher.dispatch(notifier_config, event, CREATED)

    assert [r.status for r in results] == [FAILED, FAILED, SENT]
    assert results[0].error == "connection refused"
    assert results[1].status_code == 500
    assert results[2].status_code == 204
    assert "Webhook sending failed" in caplog.text


def test_redirect_status_is_a_failure(dispatcher, session, notifier_config, created_event):
    session.post.return_value = ok_response(302, "Found")

    results = dispatcher.dispatch(notifier_config, created_event, CREATED)

    assert results[0].status == FAILED


def test_timeout_from_dispatcher_overrides_config(session, notifier_config, created_event):
    Dispatcher(timeout=1.5, session=session).dispatch(notifier_config, created_event, CREATED)

    assert session.post.call_args.kwargs["timeout"] == 1.5


def test_close_closes_session(dispatcher, session):
    dispatcher.close()

    session.close.assert_called_once_with()
