"""Place one stream's samples on the absolute time axis."""

from __future__ import annotations

import logging

from shared.models import NormalizedPoint, StreamRecord, TimelineSample

from .timeutil import parse_timestamp, to_epoch_ms, truncate_text

logger = logging.getLogger(__name__)

LABEL_TITLE_LENGTH = 30


def stream_label(stream: StreamRecord) -> str:
    """Chart label: channel name plus the head of the title."""
    return f"{stream.channel_name} - {truncate_text(stream.title, LABEL_TITLE_LENGTH)}"


def normalize_timeline(
    stream: StreamRecord, samples: list[TimelineSample]
) -> list[NormalizedPoint]:
    """Convert raw samples into labelled points, dropping unparseable timestamps.

    Input order is preserved; sorting is left to the merger.
    """
    if not samples:
        return []

    label = stream_label(stream)
    points: list[NormalizedPoint] = []
    for sample in samples:
        collected_at = parse_timestamp(sample.collected_at)
        if collected_at is None:
            continue
        points.append(
            NormalizedPoint(
                timestamp=sample.collected_at,
                timestamp_ms=to_epoch_ms(collected_at),
                stream_id=stream.id,
                stream_label=label,
                viewer_count=sample.viewer_count or 0,
                chat_rate_1min=sample.chat_rate_1min or 0,
            )
        )

    dropped = len(samples) - len(points)
    if dropped:
        logger.debug(f"Stream {stream.id}: dropped {dropped} samples with bad timestamps")
    return points
