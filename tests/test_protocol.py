"""Tests for activity parsing and reply construction."""

from roo_bridge.protocol import Activity, reply_activity, trace_activity


def test_from_dict_reads_channel_fields():
    activity = Activity.from_dict(
        {
            "type": "message",
            "id": "a1",
            "text": "hi",
            "from": {"id": "u1"},
            "recipient": {"id": "bot"},
            "conversation": {"id": "c1"},
            "serviceUrl": "http://channel.test",
            "channelId": "emulator",
            "deliveryMode": "expectReplies",
        }
    )

    assert activity.type == "message"
    assert activity.from_id == "u1"
    assert activity.conversation_id == "c1"
    assert activity.service_url == "http://channel.test"
    assert activity.is_user_message
    assert activity.expects_replies


def test_from_dict_tolerates_missing_fields():
    activity = Activity.from_dict({"from": "not-a-dict", "text": 42})

    assert activity.type == ""
    assert activity.from_id == ""
    assert activity.text == ""
    assert not activity.is_user_message
    assert not activity.expects_replies


def test_message_without_sender_is_not_a_user_message():
    assert not Activity.from_dict({"type": "message", "text": "hi"}).is_user_message


def test_reply_swaps_sender_and_recipient():
    activity = Activity.from_dict(
        {
            "type": "message",
            "id": "a1",
            "from": {"id": "u1"},
            "recipient": {"id": "bot"},
            "conversation": {"id": "c1"},
        }
    )

    reply = reply_activity(activity, "hello")

    assert reply["type"] == "message"
    assert reply["text"] == "hello"
    assert reply["from"] == {"id": "bot"}
    assert reply["recipient"] == {"id": "u1"}
    assert reply["conversation"] == {"id": "c1"}
    assert reply["replyToId"] == "a1"


def test_trace_activity():
    activity = Activity.from_dict({"type": "message", "from": {"id": "u1"}})

    trace = trace_activity(activity, name="T", value="v", value_type="urn:x", label="L")

    assert trace["type"] == "trace"
    assert trace["name"] == "T"
    assert trace["value"] == "v"
    assert trace["valueType"] == "urn:x"
    assert trace["label"] == "L"
    assert "replyToId" not in trace
