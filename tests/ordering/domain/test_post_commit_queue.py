"""Tests for the post-commit task queue."""

from ordering.order.post_commit import PostCommitQueue


class TestPostCommitQueue:
    def test_runs_tasks_in_order(self):
        calls = []
        queue = PostCommitQueue()
        queue.enqueue("first", calls.append, 1)
        queue.enqueue("second", calls.append, 2)

        outcomes = queue.drain()

        assert calls == [1, 2]
        assert [outcome.name for outcome in outcomes] == ["first", "second"]
        assert all(outcome.succeeded for outcome in outcomes)

    def test_failure_is_isolated(self):
        calls = []

        def boom():
            raise RuntimeError("reward service down")

        queue = PostCommitQueue()
        queue.enqueue("failing", boom)
        queue.enqueue("after", calls.append, "ran")

        outcomes = queue.drain()

        assert calls == ["ran"]
        assert outcomes[0].succeeded is False
        assert outcomes[0].error == "reward service down"
        assert outcomes[1].succeeded is True

    def test_drain_empties_queue(self):
        queue = PostCommitQueue()
        queue.enqueue("noop", lambda: None)
        assert len(queue) == 1
        queue.drain()
        assert len(queue) == 0
        assert queue.drain() == []

    def test_keyword_arguments_are_passed(self):
        received = {}
        queue = PostCommitQueue()
        queue.enqueue("kw", received.update, policy="strict")
        queue.drain()
        assert received == {"policy": "strict"}
