"""Tests for merging change events of several streams."""

from shared.models import CategoryChangeEvent, EventSource, TitleChangeEvent

from services.comparison import merge_events


def _source(stream_id: int, category=(), title=()) -> EventSource:
    return EventSource(
        stream_id=stream_id,
        label=f"channel_{stream_id}",
        color=f"#00000{stream_id}",
        category_changes=list(category),
        title_changes=list(title),
    )


class TestMergeEvents:
    def test_sorted_across_streams(self) -> None:
        events = merge_events(
            [
                _source(
                    1,
                    category=[
                        CategoryChangeEvent(
                            timestamp="2024-01-01T00:10:00Z",
                            from_category="Just Chatting",
                            to_category="VALORANT",
                        )
                    ],
                ),
                _source(
                    2,
                    title=[TitleChangeEvent(timestamp="2024-01-01T00:05:00Z", to_title="New title")],
                ),
            ]
        )

        assert [(e.stream_id, e.event_type) for e in events] == [(2, "title"), (1, "category")]
        assert events[0].timestamp_ms < events[1].timestamp_ms

    def test_descriptions(self) -> None:
        events = merge_events(
            [
                _source(
                    1,
                    category=[
                        CategoryChangeEvent(timestamp="2024-01-01T00:00:00Z", to_category="Minecraft")
                    ],
                    title=[
                        TitleChangeEvent(
                            timestamp="2024-01-01T00:01:00Z", from_title="a", to_title="y" * 50
                        )
                    ],
                )
            ]
        )

        assert events[0].description == "(none) → Minecraft"
        assert events[1].description == "Title changed: " + "y" * 40 + "..."

    def test_carries_label_and_color(self) -> None:
        (event,) = merge_events(
            [_source(3, title=[TitleChangeEvent(timestamp="2024-01-01T00:00:00Z", to_title="t")])]
        )
        assert event.stream_label == "channel_3"
        assert event.color == "#000003"

    def test_simultaneous_events_not_deduplicated(self) -> None:
        change = CategoryChangeEvent(
            timestamp="2024-01-01T00:00:00Z", from_category="A", to_category="B"
        )
        events = merge_events([_source(1, category=[change]), _source(2, category=[change])])
        assert [e.stream_id for e in events] == [1, 2]

    def test_unparseable_timestamps_dropped(self) -> None:
        events = merge_events(
            [
                _source(
                    1,
                    category=[CategoryChangeEvent(timestamp="garbage", to_category="B")],
                    title=[TitleChangeEvent(timestamp="", to_title="t")],
                )
            ]
        )
        assert events == []
