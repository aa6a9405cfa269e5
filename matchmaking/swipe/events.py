"""
User-facing events emitted after a swipe commits.
"""

from matchmaking.interfaces import MatchEvent
from matchmaking.models import MatchRecordDTO


def match_event(record: MatchRecordDTO, counterpart_id: str, chat_room_id: str = None) -> MatchEvent:
    return MatchEvent(
        event_type='match',
        title="It's a match!",
        body="You have a new match. Say hello!",
        priority='normal',
        counterpart_id=counterpart_id,
        match_id=record.id,
        payload={
            'compatibility_score': record.compatibility_score,
            'chat_room_id': chat_room_id,
        }
    )


def super_match_event(record: MatchRecordDTO, counterpart_id: str, chat_room_id: str = None) -> MatchEvent:
    return MatchEvent(
        event_type='super_match',
        title="Super like successful - It's a match!",
        body="A super like turned into a match. Your conversation has priority.",
        priority='high',
        counterpart_id=counterpart_id,
        match_id=record.id,
        payload={
            'compatibility_score': record.compatibility_score,
            'chat_room_id': chat_room_id,
        }
    )


def super_like_event(record: MatchRecordDTO) -> MatchEvent:
    return MatchEvent(
        event_type='super_like',
        title='New super like',
        body='Someone has super liked your profile!',
        priority='high',
        counterpart_id=record.initiator_id,
        match_id=record.id,
        payload={'sender_id': record.initiator_id}
    )
