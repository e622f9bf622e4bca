from datetime import timedelta

import pytest

from srs_core.errors import InvalidLimit
from srs_core.fsrs.constants import CardState
from srs_core.queue import DueQueueSelector


@pytest.fixture
def selector(card_store, scheduler) -> DueQueueSelector:
    return DueQueueSelector(card_store, scheduler)


def _seed_deck(card_store, make_card, now, deck_id=1):
    """Five due cards across all states plus one card that is not due yet."""
    ids = {}
    ids["review_old"] = card_store.upsert_card(
        make_card(card_id=None, deck_id=deck_id, due=now - timedelta(days=3))
    ).card_id
    ids["relearning"] = card_store.upsert_card(
        make_card(card_id=None, deck_id=deck_id, state=CardState.RELEARNING, stability=1.0,
                  due=now - timedelta(days=5))
    ).card_id
    ids["review_recent"] = card_store.upsert_card(
        make_card(card_id=None, deck_id=deck_id, due=now - timedelta(hours=2))
    ).card_id
    ids["learning"] = card_store.upsert_card(
        make_card(card_id=None, deck_id=deck_id, state=CardState.LEARNING, stability=2.0,
                  due=now - timedelta(minutes=3))
    ).card_id
    ids["new"] = card_store.create_card(now - timedelta(minutes=1), deck_id=deck_id).card_id
    card_store.upsert_card(make_card(card_id=None, deck_id=deck_id, due=now + timedelta(days=1)))
    return ids


def test_due_cards_ordered_by_state_then_due(selector, card_store, make_card, now):
    ids = _seed_deck(card_store, make_card, now)

    due = selector.get_due(now)

    assert [d.card.card_id for d in due] == [
        ids["new"],
        ids["learning"],
        ids["review_old"],
        ids["review_recent"],
        ids["relearning"],
    ]


def test_limit_returns_highest_priority_cards(selector, card_store, make_card, now):
    ids = _seed_deck(card_store, make_card, now, deck_id=1)
    _seed_deck(card_store, make_card, now, deck_id=2)

    due = selector.get_due(now, scope=1, limit=2)

    assert len(due) == 2
    assert [d.card.card_id for d in due] == [ids["new"], ids["learning"]]
    assert all(d.card.deck_id == 1 for d in due)


def test_not_due_cards_are_excluded(selector, card_store, make_card, now):
    card_store.upsert_card(make_card(card_id=None, due=now + timedelta(seconds=1)))

    assert selector.get_due(now) == []


def test_due_cards_carry_previews(selector, card_store, now):
    card = card_store.create_card(now)

    (due,) = selector.get_due(now)

    assert due.card.card_id == card.card_id
    assert due.next_intervals == {"again": "1m", "hard": "5m", "good": "10m", "easy": "16d"}
    assert due.preview.good.card.state == CardState.LEARNING


def test_selection_does_not_modify_store(selector, card_store, make_card, now):
    saved = card_store.upsert_card(make_card(card_id=None, due=now))

    selector.get_due(now)

    assert card_store.get_card(saved.card_id) == saved


@pytest.mark.parametrize("limit", [0, -3])
def test_limit_must_be_positive(selector, now, limit):
    with pytest.raises(InvalidLimit):
        selector.get_due(now, limit=limit)
