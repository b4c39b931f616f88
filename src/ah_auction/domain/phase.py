"""Auction phase machine.

Phase is derived, never stored:

    ENDED     finalized, or now >= posted_time + start_delay + live_duration
    UPCOMING  now <  posted_time + start_delay
    LIVE      otherwise

A freshly created auction is UPCOMING (or LIVE with zero delay); there is no
draft state because creation always sets posted_time.

Legal actions per phase:

    action    UPCOMING  LIVE  ENDED
    EDIT      yes       yes   no
    ACTIVATE  yes       no    no
    BID       no        yes   no
    END       yes       yes   only while not finalized (window elapsed,
                              settlement still pending)
    DELETE    yes       yes   no
"""

from datetime import datetime

from src.ah_auction.domain.constants import SCHEDULER_CALLER_ID
from src.ah_auction.domain.models import Auction, AuctionAggregate
from src.ah_common.enums import AuctionAction, AuctionPhase
from src.ah_common.errors import (
    AlreadyFinalizedError,
    AuctionHasBidsError,
    IllegalPhaseError,
    NotAuctionOwnerError,
)
from src.ah_common.identity import same_user

_LEGAL_PHASES: dict[AuctionAction, frozenset[AuctionPhase]] = {
    AuctionAction.EDIT: frozenset({AuctionPhase.UPCOMING, AuctionPhase.LIVE}),
    AuctionAction.ACTIVATE: frozenset({AuctionPhase.UPCOMING}),
    AuctionAction.BID: frozenset({AuctionPhase.LIVE}),
    AuctionAction.END: frozenset(
        {AuctionPhase.UPCOMING, AuctionPhase.LIVE, AuctionPhase.ENDED}
    ),
    AuctionAction.DELETE: frozenset({AuctionPhase.UPCOMING, AuctionPhase.LIVE}),
}


def classify(auction: Auction, now: datetime) -> AuctionPhase:
    """Pure function of (posted_time, start_delay, live_duration, finalized, now)."""
    if auction.finalized or now >= auction.ends_at:
        return AuctionPhase.ENDED
    if now < auction.starts_at:
        return AuctionPhase.UPCOMING
    return AuctionPhase.LIVE


def can_transition(phase: AuctionPhase, action: AuctionAction) -> bool:
    return phase in _LEGAL_PHASES[action]


def authorize(
    aggregate: AuctionAggregate,
    action: AuctionAction,
    caller_id: str,
    now: datetime,
) -> AuctionPhase:
    """Check ownership and phase for `action`; return the phase on success.

    BID is only classified here. Whether the caller may bid (not the seller,
    auction live, amount, funds) is decided by the BidValidator so that its
    rule order is preserved.
    """
    auction = aggregate.auction
    phase = classify(auction, now)

    if action is AuctionAction.BID:
        return phase

    if action is AuctionAction.END:
        if auction.finalized:
            raise AlreadyFinalizedError(auction.id)
        if caller_id != SCHEDULER_CALLER_ID and not same_user(caller_id, auction.seller_id):
            raise NotAuctionOwnerError(auction.id)
        return phase

    if action is AuctionAction.DELETE and aggregate.bid_count > 0:
        raise AuctionHasBidsError(auction.id, aggregate.bid_count)

    if not same_user(caller_id, auction.seller_id):
        raise NotAuctionOwnerError(auction.id)
    if not can_transition(phase, action):
        raise IllegalPhaseError(action.value, phase.value)
    return phase
