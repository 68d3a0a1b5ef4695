"""
Tests for the live channel hub
"""
import json

from app.application.live_channels import LiveChannel, LiveChannelHub


def test_fake_channel_satisfies_protocol(make_channel):
    assert isinstance(make_channel(), LiveChannel)


class TestMembership:
    def test_join_and_leave(self, make_channel):
        hub = LiveChannelHub()
        channel = make_channel()

        hub.join(channel)
        assert channel in hub
        assert len(hub) == 1

        hub.leave(channel)
        assert channel not in hub
        assert len(hub) == 0

    def test_join_is_idempotent(self, make_channel):
        hub = LiveChannelHub()
        channel = make_channel()

        hub.join(channel)
        hub.join(channel)

        assert len(hub) == 1

    def test_leave_unknown_channel_is_noop(self, make_channel):
        hub = LiveChannelHub()
        hub.leave(make_channel())
        hub.leave(make_channel())
        assert len(hub) == 0


class TestBroadcast:
    def test_every_open_member_gets_frame(self, make_channel):
        hub = LiveChannelHub()
        channels = [make_channel() for _ in range(3)]
        for channel in channels:
            hub.join(channel)

        assert hub.broadcast("hello") == 3
        assert all(channel.frames == ["hello"] for channel in channels)

    def test_closed_member_is_skipped_not_removed(self, make_channel):
        hub = LiveChannelHub()
        open_channel = make_channel()
        closed_channel = make_channel(is_open=False)
        hub.join(open_channel)
        hub.join(closed_channel)

        assert hub.broadcast("x") == 1
        assert closed_channel.frames == []
        assert closed_channel in hub

    def test_failing_member_does_not_stop_others(self, make_channel):
        hub = LiveChannelHub()
        broken = make_channel(fail=True)
        healthy = make_channel()
        hub.join(broken)
        hub.join(healthy)

        assert hub.broadcast("x") == 1
        assert healthy.frames == ["x"]
        assert broken in hub

    def test_per_channel_order_matches_broadcast_order(self, make_channel):
        hub = LiveChannelHub()
        a, b = make_channel(), make_channel()
        hub.join(a)
        hub.join(b)

        for i in range(20):
            hub.broadcast(str(i))

        expected = [str(i) for i in range(20)]
        assert a.frames == expected
        assert b.frames == expected

    def test_channel_joined_later_misses_earlier_frames(self, make_channel):
        hub = LiveChannelHub()
        early = make_channel()
        hub.join(early)
        hub.broadcast("first")

        late = make_channel()
        hub.join(late)
        hub.broadcast("second")

        assert early.frames == ["first", "second"]
        assert late.frames == ["second"]

    def test_no_members(self):
        assert LiveChannelHub().broadcast("x") == 0

    def test_broadcast_json_keeps_unicode(self, make_channel):
        hub = LiveChannelHub()
        channel = make_channel()
        hub.join(channel)

        hub.broadcast_json({"type": "transaction", "data": {"note": "tabungan lebaran ✓"}})

        assert "✓" in channel.frames[0]
        assert json.loads(channel.frames[0])["data"]["note"] == "tabungan lebaran ✓"
