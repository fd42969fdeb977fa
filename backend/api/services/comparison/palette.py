"""Display colours for selected streams."""

STREAM_COLORS = [
    "#3B82F6",  # blue
    "#10B981",  # emerald
    "#F59E0B",  # amber
    "#EF4444",  # red
    "#8B5CF6",  # violet
    "#EC4899",  # pink
    "#06B6D4",  # cyan
    "#84CC16",  # lime
    "#F97316",  # orange
    "#6366F1",  # indigo
]


def stream_color(index: int) -> str:
    """Colour for the stream at ``index`` in the selection order."""
    return STREAM_COLORS[index % len(STREAM_COLORS)]
