"""
Read-only views over a loaded SpacedRepetitionData aggregate.

All functions are pure; `now` is epoch milliseconds. Sorting relies on
Python's stable sort, so ties keep the aggregate's card order.
"""

from cramdeck.domain.review.models import ReviewCard, ReviewStats, SpacedRepetitionData


def get_due_cards(data: SpacedRepetitionData, now: int) -> list[ReviewCard]:
    """Cards whose next review date has passed, soonest-due first."""
    due = [card for card in data.cards.values() if card.next_review_date <= now]
    return sorted(due, key=lambda card: card.next_review_date)


def get_failed_cards(data: SpacedRepetitionData) -> list[ReviewCard]:
    """Cards whose latest answer failed, most recently failed first."""
    failed = [card for card in data.cards.values() if not card.last_answered_correct]
    return sorted(failed, key=lambda card: card.last_review_date, reverse=True)


def get_cards_needing_review(
    data: SpacedRepetitionData, now: int, limit: int | None = None
) -> list[ReviewCard]:
    """
    The practice queue: failed cards first, then due cards, each group
    ordered by next review date.

    Args:
        data: Loaded aggregate.
        now: Current time in epoch ms.
        limit: Optional cap on the number of returned cards.
    """
    pending = [
        card
        for card in data.cards.values()
        if not card.last_answered_correct or card.next_review_date <= now
    ]
    # False sorts before True, which puts failed cards at the front
    pending.sort(key=lambda card: (card.last_answered_correct, card.next_review_date))
    if limit is not None:
        return pending[:limit]
    return pending


def get_stats(data: SpacedRepetitionData, now: int) -> ReviewStats:
    cards = list(data.cards.values())
    return ReviewStats(
        total_reviewed=len(cards),
        mastered=sum(1 for c in cards if c.repetitions >= 3 and c.last_answered_correct),
        learning=sum(1 for c in cards if 0 < c.repetitions < 3),
        struggling=sum(1 for c in cards if not c.last_answered_correct),
        due_now=sum(1 for c in cards if c.next_review_date <= now),
    )


def current_streak(data: SpacedRepetitionData) -> int:
    """Number of correct answers at the end of the history, across all cards."""
    streak = 0
    for entry in reversed(data.review_history):
        if not entry.correct:
            break
        streak += 1
    return streak
