"""
Response Repair Module
======================
Converts the collaborator's loosely-typed JSON into Clip and CaptionSegment
entities.

Nothing the model returns is trusted. Every clip's end boundary is forced
into the configured window with

    end' = min(start + max_duration, max(end, start + min_duration))

which also fixes inverted (end < start) candidates. The end is deliberately
not clamped to the video duration, so a clip starting close to the end of
the video may extend past it.

Candidates that cannot be repaired (not an object, no numeric start) are
dropped and logged instead of failing the whole response.
"""

import logging
import math
from typing import Any, Callable, List, Optional

from ..exceptions import ResponseFormatError
from ..logging_config import log_repair
from ..models import CaptionSegment, Clip

logger = logging.getLogger(__name__)

UNTITLED_CLIP = "Untitled clip"


def _as_float(value: Any) -> Optional[float]:
    """Numeric value of a JSON scalar, or None if it isn't a finite number."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_keywords(value: Any) -> tuple:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(k).strip() for k in value if str(k).strip())


def clamp_end(start: float, end: float, min_duration: float, max_duration: float) -> float:
    """Force end - start into [min_duration, max_duration]."""
    return min(start + max_duration, max(end, start + min_duration))


def _require_list(raw: Any, entity: str) -> list:
    if not isinstance(raw, list):
        raise ResponseFormatError(
            f"Expected a JSON array of {entity} candidates, got {type(raw).__name__}",
            error_code="not_an_array"
        )
    return raw


def repair_clips(
    raw: Any,
    min_duration: float,
    max_duration: float,
    make_id: Callable[[], str],
) -> List[Clip]:
    """
    Repair raw clip candidates.

    Args:
        raw: Decoded JSON from the collaborator
        min_duration: Lower bound of the clip window
        max_duration: Upper bound of the clip window
        make_id: Produces a fresh session-unique identifier per clip

    Returns:
        Repaired clips in response order (possibly empty)

    Raises:
        ResponseFormatError: If the response is not an array
    """
    candidates = _require_list(raw, "clip")
    clips: List[Clip] = []

    for index, candidate in enumerate(candidates):
        if not isinstance(candidate, dict):
            logger.warning(f"Dropping clip candidate {index}: not an object")
            log_repair("clip", index, "dropped", {'reason': 'not an object'})
            continue

        start = _as_float(candidate.get('start'))
        if start is None:
            logger.warning(f"Dropping clip candidate {index}: no numeric start")
            log_repair("clip", index, "dropped", {'reason': 'missing start', 'start': str(candidate.get('start'))})
            continue

        raw_end = _as_float(candidate.get('end'))
        end = clamp_end(start, raw_end if raw_end is not None else start, min_duration, max_duration)
        if raw_end is None or end != raw_end:
            log_repair("clip", index, "clamped_end", {'start': start, 'raw_end': raw_end, 'end': end})

        title = candidate.get('title')
        if not isinstance(title, str) or not title.strip():
            title = UNTITLED_CLIP
            log_repair("clip", index, "defaulted", {'field': 'title'})

        score = _as_float(candidate.get('viralityScore'))
        summary = candidate.get('summary')

        clips.append(Clip(
            clip_id=make_id(),
            start=start,
            end=end,
            title=title.strip(),
            virality_score=int(round(score)) if score is not None else 0,
            summary=summary if isinstance(summary, str) else "",
            keywords=_as_keywords(candidate.get('keywords')),
        ))

    logger.info(f"Repaired {len(clips)}/{len(candidates)} clip candidates")
    return clips


def repair_captions(raw: Any, make_id: Callable[[], str]) -> List[CaptionSegment]:
    """
    Repair raw caption candidates.

    Candidates need numeric startTime/endTime with endTime > startTime.
    Overlap between segments is not checked.
    """
    candidates = _require_list(raw, "caption")
    captions: List[CaptionSegment] = []

    for index, candidate in enumerate(candidates):
        if not isinstance(candidate, dict):
            log_repair("caption", index, "dropped", {'reason': 'not an object'})
            continue

        start = _as_float(candidate.get('startTime', candidate.get('start')))
        end = _as_float(candidate.get('endTime', candidate.get('end')))
        if start is None or end is None or end <= start:
            log_repair("caption", index, "dropped", {'reason': 'invalid time range', 'start': start, 'end': end})
            continue

        text = candidate.get('text')
        captions.append(CaptionSegment(
            caption_id=make_id(),
            start_time=start,
            end_time=end,
            text=text.strip() if isinstance(text, str) else "",
        ))

    logger.info(f"Repaired {len(captions)}/{len(candidates)} caption candidates")
    return captions
