"""Tests for publisher module."""

import io
import logging

import pytest

from dirwatch.models import ChangeEvent, ChangeKind
from dirwatch.publisher import ConsoleListener, Listener, NotificationPublisher


class RecordingListener(Listener):
    def __init__(self, name="recorder", log=None):
        self.name = name
        self.messages = []
        self.log = log

    def notify(self, message):
        self.messages.append(message)
        if self.log is not None:
            self.log.append(self.name)


class FailingListener(Listener):
    def notify(self, message):
        raise IOError("sink closed")


class TestListener:
    """Tests for the Listener interface."""

    def test_cannot_instantiate_abstract(self):
        with pytest.raises(TypeError):
            Listener()

    def test_console_listener_prefixes_name(self):
        stream = io.StringIO()
        listener = ConsoleListener("Observer 1", stream=stream)

        listener.notify("[10:00:00 AM] File added: a.txt")

        assert stream.getvalue() == "[Observer 1] [10:00:00 AM] File added: a.txt\n"

    def test_console_listener_defaults_to_stdout(self, capsys):
        ConsoleListener("Observer 2").notify("hello")

        assert capsys.readouterr().out == "[Observer 2] hello\n"


class TestNotificationPublisher:
    """Tests for NotificationPublisher class."""

    def test_subscribe(self):
        publisher = NotificationPublisher()
        listener = RecordingListener()

        assert publisher.subscribe(listener) is True
        assert len(publisher) == 1
        assert publisher.listeners() == [listener]

    def test_subscribe_twice_registers_once(self):
        publisher = NotificationPublisher()
        listener = RecordingListener()

        publisher.subscribe(listener)
        assert publisher.subscribe(listener) is False

        publisher.publish(ChangeEvent(ChangeKind.ADDED, "a.txt"))
        assert len(listener.messages) == 1

    def test_unsubscribe(self):
        publisher = NotificationPublisher()
        listener = RecordingListener()
        publisher.subscribe(listener)

        assert publisher.unsubscribe(listener) is True
        assert publisher.unsubscribe(listener) is False
        assert len(publisher) == 0

        publisher.publish(ChangeEvent(ChangeKind.ADDED, "a.txt"))
        assert listener.messages == []

    def test_publish_formats_message(self):
        publisher = NotificationPublisher()
        listener = RecordingListener()
        publisher.subscribe(listener)
        event = ChangeEvent(ChangeKind.RENAMED, "a.txt", "b.txt")

        delivered = publisher.publish(event)

        assert delivered == 1
        assert listener.messages == [event.format_message()]

    def test_publish_in_registration_order(self):
        publisher = NotificationPublisher()
        order = []
        for name in ("first", "second", "third"):
            publisher.subscribe(RecordingListener(name, log=order))

        publisher.publish(ChangeEvent(ChangeKind.DELETED, "a.txt"))

        assert order == ["first", "second", "third"]

    def test_publish_with_no_listeners(self):
        publisher = NotificationPublisher()

        assert publisher.publish(ChangeEvent(ChangeKind.ADDED, "a.txt")) == 0

    def test_failing_listener_does_not_block_others(self, caplog):
        publisher = NotificationPublisher()
        before = RecordingListener("before")
        after = RecordingListener("after")
        publisher.subscribe(before)
        publisher.subscribe(FailingListener())
        publisher.subscribe(after)

        with caplog.at_level(logging.ERROR, logger="dirwatch.publisher"):
            delivered = publisher.publish(ChangeEvent(ChangeKind.MODIFIED, "a.txt"))

        assert delivered == 2
        assert len(before.messages) == 1
        assert len(after.messages) == 1
        assert "sink closed" in caplog.text

    def test_listener_may_unsubscribe_during_publish(self):
        publisher = NotificationPublisher()
        other = RecordingListener("other")

        class OneShot(Listener):
            def __init__(self):
                self.calls = 0

            def notify(self, message):
                self.calls += 1
                publisher.unsubscribe(self)

        one_shot = OneShot()
        publisher.subscribe(one_shot)
        publisher.subscribe(other)

        publisher.publish(ChangeEvent(ChangeKind.ADDED, "a.txt"))
        publisher.publish(ChangeEvent(ChangeKind.ADDED, "b.txt"))

        assert one_shot.calls == 1
        assert len(other.messages) == 2
