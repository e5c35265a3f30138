from __future__ import annotations

from collections.abc import Iterable

from ..extensions import db
from ..models import ForbiddenPair


def get_forbidden_for(name: str) -> tuple[set[str], set[str]]:
    """
    Returns:
      outgoing = {receiver_name} that name cannot gift to
      incoming = {giver_name} that cannot gift to name
    """
    outgoing = {f.receiver_name for f in ForbiddenPair.query.filter_by(giver_name=name).all()}
    incoming = {f.giver_name for f in ForbiddenPair.query.filter_by(receiver_name=name).all()}
    return outgoing, incoming


def set_forbidden_for(name: str, dont_gift_to: set[str], among: Iterable[str] | None = None) -> None:
    """
    Replaces name -> receiver entries with ``dont_gift_to``. When ``among`` is
    given only entries for those receivers are replaced; the rest are kept.
    """
    q = ForbiddenPair.query.filter_by(giver_name=name)
    if among is not None:
        among = set(among)
        dont_gift_to = dont_gift_to & among
        q = q.filter(ForbiddenPair.receiver_name.in_(among))
    q.delete(synchronize_session=False)

    for receiver in sorted(dont_gift_to - {name}):
        db.session.add(ForbiddenPair(giver_name=name, receiver_name=receiver))
    db.session.commit()
