"""
Vote submission pipeline.

Order of checks: voting-open gate, ballot against live assignments,
RUT pre-check, insert. The unique constraint on ``votes.rut`` is what
actually guarantees one vote per identity; the pre-check only avoids a
doomed insert. A racing duplicate that slips past it is caught from the
``IntegrityError`` and reported as the same conflict.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import crud
from errors import ErrorKind, VotingError, DUPLICATE_RUT, VOTING_CLOSED, invalid_input
from models import Vote
import schemas

logger = logging.getLogger(__name__)


def validate_ballot(db: Session, selections: schemas.BallotSelections) -> None:
    """Every selected DJ must be assigned to the category it was picked for."""
    allowed = crud.get_assignment_pairs(db)
    invalid = sorted(
        category_id
        for category_id, dj_id in selections.items()
        if (category_id, dj_id) not in allowed
    )
    if invalid:
        raise invalid_input(
            details=[
                {
                    "field": f"voteData.{category_id}",
                    "message": "El DJ seleccionado no participa en esta categoría",
                }
                for category_id in invalid
            ]
        )


def submit_vote(db: Session, vote: schemas.VoteCreate) -> Vote:
    if not crud.is_voting_open(db):
        raise VotingError(ErrorKind.FORBIDDEN, VOTING_CLOSED)

    validate_ballot(db, vote.vote_data)

    if crud.get_vote_by_rut(db, vote.rut):
        logger.info("Rejected duplicate vote (pre-check)")
        raise VotingError(ErrorKind.CONFLICT, DUPLICATE_RUT)

    try:
        db_vote = crud.create_vote(db, vote)
    except IntegrityError:
        db.rollback()
        if crud.get_vote_by_rut(db, vote.rut):
            logger.info("Rejected duplicate vote (unique constraint)")
            raise VotingError(ErrorKind.CONFLICT, DUPLICATE_RUT)
        raise

    logger.info("Vote %s recorded with %d selections", db_vote.id, len(vote.vote_data))
    return db_vote
