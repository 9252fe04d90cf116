"""Tests for the refresh signal fan-out."""

from llm_checkpoint.core.signals import RefreshNotifier


class TestRefreshNotifier:

    def test_subscribers_receive_path(self):
        notifier = RefreshNotifier()
        seen = []
        notifier.subscribe(seen.append)
        notifier.emit("src/a.py")
        notifier.emit()
        assert seen == ["src/a.py", None]

    def test_unsubscribe(self):
        notifier = RefreshNotifier()
        seen = []
        unsubscribe = notifier.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        notifier.emit("a")
        assert seen == []
        assert notifier.subscriber_count == 0

    def test_failing_subscriber_does_not_block_others(self):
        notifier = RefreshNotifier()
        seen = []

        def _broken(path):
            raise RuntimeError("view disposed")

        notifier.subscribe(_broken)
        notifier.subscribe(seen.append)
        notifier.emit("a")
        assert seen == ["a"]
